from .base import MockAdapter
