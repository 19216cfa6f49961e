# flake8: noqa

from .storage import Bar, BarStorage
