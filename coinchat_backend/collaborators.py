from functools import lru_cache

from django.conf import settings
from django.core.signals import setting_changed
from django.utils.module_loading import import_string


@lru_cache(maxsize=None)
def _load(path):
    return import_string(path)()


def get_collaborator(setting_name):
    """settings 에 dotted path 로 지정된 외부 협력자 인스턴스를 반환한다."""
    return _load(getattr(settings, setting_name))


def _reset(**kwargs):
    if kwargs.get("setting", "").startswith("COINCHAT_"):
        _load.cache_clear()


setting_changed.connect(_reset)
