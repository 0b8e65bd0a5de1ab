from .notifier import Notifier, TEMPLATES

__all__ = ['Notifier', 'TEMPLATES']
