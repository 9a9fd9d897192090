from .push_provider import PushGeolocationProvider

__all__ = ['PushGeolocationProvider']
