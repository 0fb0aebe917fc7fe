import logging
from typing import Mapping

from tookan_api.type_defs import is_json_object, JsonObject, JsonValue

logger = logging.getLogger(__name__)

_SCALAR_TYPES = (bool, int, float, str)


class Serializable:
    """Config section whose public annotated attributes round-trip through TOML."""

    def _annotations(self) -> dict[str, object]:
        annotations: dict[str, object] = {}
        for cls in reversed(type(self).mro()):
            cls_annotations = getattr(cls, "__annotations__", None)
            if isinstance(cls_annotations, dict):
                annotations.update(
                    (key, hint) for key, hint in cls_annotations.items() if not key.startswith("_")
                )
        return annotations

    def to_dict(self) -> JsonObject:
        result: JsonObject = {}
        for key in self.get_all_keys():
            if key.startswith("_"):
                continue
            value = getattr(self, key, None)
            result[key] = value.to_dict() if isinstance(value, Serializable) else value
        return result

    def _coerce(self, key: str, hint: object, value: JsonValue) -> object:
        # Hand-edited files often quote numbers or write 1 for 1.0.
        if value is None or hint not in _SCALAR_TYPES:
            return value
        if hint is float and isinstance(value, int) and not isinstance(value, bool):
            return float(value)
        if isinstance(value, hint):  # type: ignore[arg-type]
            return value
        try:
            if hint is bool:
                if isinstance(value, str):
                    return value.strip().lower() in {"1", "true", "yes", "on"}
                return bool(value)
            return hint(value)  # type: ignore[operator]
        except (TypeError, ValueError):
            logger.warning(
                "Ignoring %s.%s=%r: expected %s", self.__class__.__name__, key, value, getattr(hint, "__name__", hint)
            )
            return getattr(self, key, None)

    def from_dict(self, data: Mapping[str, JsonValue]) -> None:
        for key, hint in self._annotations().items():
            try:
                existing_attr = getattr(self, key)
            except AttributeError:
                logger.warning("%s not in %s. Skipping...", key, self.__class__.__name__)
                continue

            if key not in data:
                continue
            value = data[key]

            if isinstance(existing_attr, Serializable):
                if not is_json_object(value):
                    logger.warning(
                        "Expected table for %s in %s, got %s. Skipping...",
                        key,
                        self.__class__.__name__,
                        type(value).__name__,
                    )
                    continue
                existing_attr.from_dict(value)
            else:
                setattr(self, key, self._coerce(key, hint, value))

        unknown = sorted(set(data) - set(self._annotations()) - set(vars(self)))
        if unknown:
            logger.warning("Unknown keys in %s ignored: %s", self.__class__.__name__, ", ".join(unknown))
        self.validate()

    def validate(self) -> None:
        for key in self._annotations():
            if getattr(self, key, None) is None:
                logger.warning(
                    "Configuration value '%s' is missing or None in %s", key, self.__class__.__name__
                )

    def get_all_keys(self) -> set[str]:
        return set(self.__dict__) | set(self._annotations())
