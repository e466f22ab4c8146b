"""
apimock Template Engine

Evaluates {{dotted.path}} placeholders in response templates.

The context is a plain tree of dicts, lists, scalars and zero-argument
callables. ExpressionEvaluator walks it one segment at a time;
TemplateRenderer applies the evaluator to every string in a JSON-like
value and leaves anything it cannot resolve exactly as written.
"""

import json
import logging
import re
from collections.abc import Mapping, Sequence
from typing import Any


PLACEHOLDER_PATTERN = re.compile(r'\{\{([^}]+)\}\}')


class _Undefined:
    """Marker for expressions that do not resolve to a value."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'UNDEFINED'

    def __bool__(self) -> bool:
        return False


UNDEFINED = _Undefined()


class ExpressionEvaluator:
    """
    Resolve dot-separated paths such as 'params.id' or 'faker.internet.email'.

    Rules for each segment:
    - mappings are indexed by key
    - sequences are indexed by integer segments ('items.0.name')
    - a callable is invoked with no arguments and the segment is looked up
      on its result
    - anything else ends the walk with UNDEFINED

    A callable reached at the end of the path is invoked and its result
    returned. Exceptions raised by callables propagate to the caller.

    Example:
        evaluator = ExpressionEvaluator()
        evaluator.evaluate('params.id', {'params': {'id': '7'}})  # '7'
        evaluator.evaluate('nope.nope', {})                       # UNDEFINED
    """

    def evaluate(self, expression: str, context: Any) -> Any:
        parts = expression.strip().split('.')
        if not all(parts):
            return UNDEFINED

        current = context
        for part in parts:
            current = self._step(current, part)
            if current is UNDEFINED:
                return UNDEFINED

        if callable(current):
            current = current()
        return current

    def _step(self, current: Any, part: str) -> Any:
        if callable(current) and not isinstance(current, Mapping):
            current = current()

        if isinstance(current, Mapping):
            return current[part] if part in current else UNDEFINED

        if isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
            if part.isdigit() and int(part) < len(current):
                return current[int(part)]

        return UNDEFINED


def stringify(value: Any) -> str:
    """String form of an evaluated value as it appears in rendered text."""
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if value is None:
        return 'null'
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, separators=(',', ':'), default=str)
    return str(value)


class TemplateRenderer:
    """
    Render JSON-like templates against a context.

    Strings have each {{expression}} replaced; lists and dicts are rebuilt
    element by element (dict keys are rendered too); other scalars are
    returned as they are. The input is never modified.

    Example:
        renderer = TemplateRenderer()
        renderer.render({'id': '{{params.id}}'}, {'params': {'id': '7'}})
        # {'id': '7'}
    """

    def __init__(self, evaluator: ExpressionEvaluator = None):
        self.evaluator = evaluator or ExpressionEvaluator()
        self.logger = logging.getLogger('apimock.template')

    def render(self, value: Any, context: Any) -> Any:
        if isinstance(value, str):
            return self.render_string(value, context)
        elif isinstance(value, list):
            return [self.render(item, context) for item in value]
        elif isinstance(value, dict):
            return {
                self.render_string(key, context) if isinstance(key, str) else key: self.render(item, context)
                for key, item in value.items()
            }
        return value

    def render_string(self, text: str, context: Any) -> str:
        if '{{' not in text:
            return text

        def replacer(match):
            expression = match.group(1).strip()
            try:
                result = self.evaluator.evaluate(expression, context)
            except Exception as e:
                self.logger.warning(f"Template evaluation error in {{{{{expression}}}}}: {e}")
                return match.group(0)

            if result is UNDEFINED:
                self.logger.warning(f"Unresolved template expression: {expression}")
                return match.group(0)
            return stringify(result)

        return PLACEHOLDER_PATTERN.sub(replacer, text)
