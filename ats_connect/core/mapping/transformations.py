"""
Transformation engine for field mappings.

Runs a mapped value through its ordered rule pipeline, substitutes the
mapping's default for empty values and casts the result to the declared
field type. Rules never raise: a rule that cannot handle its input hands the
value on unchanged.
"""

import re
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Iterable, Optional

from ats_connect.core.mapping.normalizers import as_bool, is_empty, parse_datetime
from ats_connect.data.models.field_mapping import FieldMapping, TransformationRule
from ats_connect.utils.constants import FieldType
from ats_connect.utils.logger import LoggerMixin

_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")


class RuleKind(str, Enum):
    """Transformation rule types; anything unrecognized resolves to IDENTITY."""

    REPLACE = "replace"
    REGEX = "regex"
    UPPERCASE = "uppercase"
    LOWERCASE = "lowercase"
    TRIM = "trim"
    DATE_FORMAT = "date_format"
    MAP_VALUES = "map_values"
    SPLIT = "split"
    JOIN = "join"
    EXTRACT_NUMBER = "extract_number"
    BOOLEAN = "boolean"
    IDENTITY = "identity"

    @classmethod
    def resolve(cls, value: Any) -> "RuleKind":
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.IDENTITY


def _map_strings(value: Any, fn: Callable[[str], Any]) -> Any:
    """Apply a string function to a string, or to each string in a list."""
    if isinstance(value, str):
        return fn(value)
    if isinstance(value, list):
        return [fn(item) if isinstance(item, str) else item for item in value]
    return value


class TransformationEngine(LoggerMixin):
    """Applies transformation rules and type casts to mapped values."""

    def __init__(self) -> None:
        self._handlers: dict[RuleKind, Callable[[Any, TransformationRule], Any]] = {
            RuleKind.REPLACE: self._replace,
            RuleKind.REGEX: self._regex,
            RuleKind.UPPERCASE: lambda v, _: _map_strings(v, str.upper),
            RuleKind.LOWERCASE: lambda v, _: _map_strings(v, str.lower),
            RuleKind.TRIM: lambda v, _: _map_strings(v, str.strip),
            RuleKind.DATE_FORMAT: self._date_format,
            RuleKind.MAP_VALUES: self._map_values,
            RuleKind.SPLIT: self._split,
            RuleKind.JOIN: self._join,
            RuleKind.EXTRACT_NUMBER: self._extract_number,
            RuleKind.BOOLEAN: lambda v, _: as_bool(v),
            RuleKind.IDENTITY: lambda v, _: v,
        }

    # -------------------------------------------------------------------------
    # Pipeline
    # -------------------------------------------------------------------------

    def apply(self, value: Any, rules: Iterable[TransformationRule | dict[str, Any]]) -> Any:
        """Run ``value`` through ``rules`` in order."""
        for rule in rules or []:
            if isinstance(rule, dict):
                rule = TransformationRule.model_validate(rule)
            value = self.apply_rule(value, rule)
        return value

    def apply_rule(self, value: Any, rule: TransformationRule) -> Any:
        kind = RuleKind.resolve(rule.type)
        if kind is RuleKind.IDENTITY and rule.type != RuleKind.IDENTITY.value:
            self.logger.debug(f"Unknown transformation rule '{rule.type}' - value passed through")
        return self._handlers[kind](value, rule)

    def value_or_default(self, value: Any, mapping: FieldMapping) -> Any:
        if is_empty(value) and mapping.default_value is not None:
            return mapping.default_value
        return value

    def transform(self, value: Any, mapping: FieldMapping) -> Any:
        """Rules, then default substitution, then cast to the declared type."""
        value = self.apply(value, mapping.transformation_rules)
        value = self.value_or_default(value, mapping)
        return self.cast(value, mapping.field_type)

    def validate(self, value: Any, mapping: FieldMapping) -> bool:
        """
        Only a required field with an empty value is invalid.

        A value that does not look like its declared type is logged and
        accepted; the cast has already coerced it as far as possible.
        """
        if mapping.is_required and is_empty(value):
            return False
        if not is_empty(value) and not self._matches_type(value, FieldType(mapping.field_type)):
            self.logger.debug(
                f"Field '{mapping.local_field}' value {value!r} does not match type {mapping.field_type}"
            )
        return True

    # -------------------------------------------------------------------------
    # Casting
    # -------------------------------------------------------------------------

    def cast(self, value: Any, field_type: FieldType | str) -> Any:
        field_type = FieldType(field_type)

        if field_type is FieldType.STRING:
            if value is None:
                return ""
            if isinstance(value, list):
                return ", ".join(str(item) for item in value)
            return str(value)

        if field_type is FieldType.NUMBER:
            if isinstance(value, bool) or value is None:
                return None
            if isinstance(value, (int, float)):
                return float(value)
            try:
                return float(str(value).replace(",", "").strip())
            except ValueError:
                return None

        if field_type is FieldType.BOOLEAN:
            return as_bool(value)

        if field_type is FieldType.DATE:
            return parse_datetime(value)

        if field_type is FieldType.ARRAY:
            if value is None:
                return []
            if isinstance(value, (list, tuple, set)):
                return list(value)
            return [value]

        # FieldType.OBJECT
        return value if isinstance(value, dict) else None

    @staticmethod
    def _matches_type(value: Any, field_type: FieldType) -> bool:
        return {
            FieldType.STRING: isinstance(value, str),
            FieldType.NUMBER: isinstance(value, (int, float)) and not isinstance(value, bool),
            FieldType.BOOLEAN: isinstance(value, bool),
            FieldType.DATE: isinstance(value, datetime),
            FieldType.ARRAY: isinstance(value, list),
            FieldType.OBJECT: isinstance(value, dict),
        }[field_type]

    # -------------------------------------------------------------------------
    # Rule Handlers
    # -------------------------------------------------------------------------

    def _replace(self, value: Any, rule: TransformationRule) -> Any:
        search = str(rule.param("search", ""))
        replacement = str(rule.param("replace", ""))
        if not search:
            return value
        return _map_strings(value, lambda s: s.replace(search, replacement))

    def _regex(self, value: Any, rule: TransformationRule) -> Any:
        pattern = rule.param("pattern")
        replacement = str(rule.param("replacement", ""))
        if not pattern:
            return value
        try:
            compiled = re.compile(pattern)
        except re.error as e:
            self.logger.warning(f"Invalid regex rule pattern {pattern!r}: {e}")
            return value
        return _map_strings(value, lambda s: compiled.sub(replacement, s))

    def _date_format(self, value: Any, rule: TransformationRule) -> Any:
        source_format = rule.param("from")
        target_format = rule.param("to") or "%Y-%m-%d"

        parsed: Optional[datetime] = None
        if isinstance(value, str) and source_format:
            try:
                parsed = datetime.strptime(value.strip(), source_format)
            except ValueError:
                parsed = None
        else:
            parsed = parse_datetime(value)

        if parsed is None:
            self.logger.debug(f"date_format could not parse {value!r}")
            return value
        return parsed.strftime(target_format)

    def _map_values(self, value: Any, rule: TransformationRule) -> Any:
        mapping = rule.param("mapping") or {}
        if not isinstance(mapping, dict) or value is None:
            return value
        if isinstance(value, (str, int, float)) and str(value) in mapping:
            return mapping[str(value)]
        return value

    def _split(self, value: Any, rule: TransformationRule) -> Any:
        if not isinstance(value, str):
            return value
        delimiter = rule.param("delimiter") or ","
        return [part.strip() for part in value.split(delimiter) if part.strip()]

    def _join(self, value: Any, rule: TransformationRule) -> Any:
        if not isinstance(value, (list, tuple)):
            return value
        delimiter = rule.param("delimiter")
        delimiter = "," if delimiter is None else str(delimiter)
        return delimiter.join(str(item) for item in value if item is not None)

    def _extract_number(self, value: Any, rule: TransformationRule) -> Any:
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return float(value)
        if not isinstance(value, str):
            return value
        match = _NUMBER.search(value.replace(",", ""))
        return float(match.group(0)) if match else None


# Singleton instance
_transformation_engine: Optional[TransformationEngine] = None


def get_transformation_engine() -> TransformationEngine:
    """Get the transformation engine singleton instance."""
    global _transformation_engine
    if _transformation_engine is None:
        _transformation_engine = TransformationEngine()
    return _transformation_engine
