import logging

from .defaults import OPTION_DEFAULTS
from .models import Option

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def get_option(name, default=None):
    """
    옵션 원본 문자열 조회. 매 호출마다 DB 를 읽는다 (캐시하지 않음).
    관리자가 바꾼 값이 다음 요청부터 바로 적용된다.
    """
    if default is None:
        default = OPTION_DEFAULTS.get(name)
    value = Option.objects.filter(name=name).values_list("value", flat=True).first()
    if value is None or value == "":
        return default
    return value


def get_int_option(name, default=None, minimum=0):
    """정수 옵션. 숫자가 아니거나 minimum 보다 작으면 기본값으로 대체한다."""
    if default is None:
        default = OPTION_DEFAULTS.get(name)
    raw = get_option(name, default)
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        logger.warning(f"Option {name}={raw!r} is not an integer, using default {default}")
        return default
    if value < minimum:
        logger.warning(f"Option {name}={value} is below {minimum}, using default {default}")
        return default
    return value


def get_bool_option(name, default=False):
    raw = get_option(name, default)
    if isinstance(raw, bool):
        return raw
    text = str(raw).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    return default


def set_option(name, value):
    option, _ = Option.objects.update_or_create(name=name, defaults={"value": str(value)})
    return option
