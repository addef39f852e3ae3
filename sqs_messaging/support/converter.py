"""
Message converters - translate between application objects and message payloads
"""

import base64
import dataclasses
import json
import pickle
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Type, Union
from uuid import UUID

from ..errors import MessageConversionError
from ..types import Message
from ..utils import logger
from .message import CONTENT_TYPE_HEADER, create_message

TEXT_PLAIN = "text/plain;charset=UTF-8"
APPLICATION_JSON = "application/json"
APPLICATION_SERIALIZED_OBJECT = "application/x-python-serialized-object;charset=utf-8"

_JSON_BUILTINS = (dict, list, str, int, float, bool)


def _mime_type(content_type: str) -> str:
    """Strip parameters from a content type"""
    return content_type.split(";", 1)[0].strip().lower()


class MessageConverter:
    """
    Base message converter

    Subclasses declare the content type they produce and implement
    _supports_payload, _to_payload and _from_payload. Both directions return
    None when the converter does not handle the value, so converters can be
    chained in a CompositeMessageConverter.
    """

    content_type: Optional[str] = None

    def from_message(self, message: Message, target_class: Optional[Type[Any]] = None) -> Any:
        """
        Convert a message payload to an application object

        Args:
            message: Received message
            target_class: Expected type (None accepts whatever the converter produces)

        Returns:
            Converted object, or None when this converter does not apply
        """
        if not self._supports_content_type(message.get("headers") or {}):
            return None
        if not self._supports_target(target_class):
            return None
        return self._from_payload(message["payload"], target_class)

    def to_message(self, payload: Any, headers: Optional[Dict[str, Any]] = None) -> Optional[Message]:
        """
        Convert an application object to a message

        Args:
            payload: Object to send
            headers: Extra headers

        Returns:
            Message with a contentType header, or None when this converter does not apply
        """
        if not self._supports_payload(payload):
            return None
        message_headers = dict(headers or {})
        if self.content_type:
            message_headers.setdefault(CONTENT_TYPE_HEADER, self.content_type)
        return create_message(self._to_payload(payload), message_headers)

    def _supports_content_type(self, headers: Dict[str, Any]) -> bool:
        # Messages without a content type are accepted by every converter
        content_type = headers.get(CONTENT_TYPE_HEADER)
        if not content_type or not self.content_type:
            return True
        return _mime_type(str(content_type)) == _mime_type(self.content_type)

    def _supports_target(self, target_class: Optional[Type[Any]]) -> bool:
        return True

    def _supports_payload(self, payload: Any) -> bool:
        raise NotImplementedError

    def _to_payload(self, payload: Any) -> str:
        raise NotImplementedError

    def _from_payload(self, payload: str, target_class: Optional[Type[Any]]) -> Any:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class SimpleMessageConverter(MessageConverter):
    """Plain text payloads, sent as is"""

    content_type = TEXT_PLAIN

    def _supports_target(self, target_class: Optional[Type[Any]]) -> bool:
        return target_class is None or target_class is str

    def _supports_payload(self, payload: Any) -> bool:
        return isinstance(payload, str)

    def _to_payload(self, payload: Any) -> str:
        return payload

    def _from_payload(self, payload: str, target_class: Optional[Type[Any]]) -> Any:
        return payload


def _json_default(value: Any) -> Any:
    """Encode values the json module does not handle"""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class JsonMessageConverter(MessageConverter):
    """JSON payloads; dataclasses are written as objects and rebuilt from them"""

    content_type = APPLICATION_JSON

    def _supports_payload(self, payload: Any) -> bool:
        if dataclasses.is_dataclass(payload) and not isinstance(payload, type):
            return True
        return isinstance(payload, (dict, list, tuple, str, int, float))

    def _to_payload(self, payload: Any) -> str:
        try:
            return json.dumps(payload, default=_json_default)
        except (TypeError, ValueError) as error:
            raise MessageConversionError(f"Could not write JSON: {error}") from error

    def _from_payload(self, payload: str, target_class: Optional[Type[Any]]) -> Any:
        try:
            value = json.loads(payload)
        except ValueError as error:
            raise MessageConversionError(f"Could not read JSON: {error}") from error

        if target_class is None:
            return value
        if target_class in _JSON_BUILTINS:
            return self._check_builtin(value, target_class)
        if not isinstance(value, dict):
            raise MessageConversionError(
                f"Cannot build {target_class.__name__} from JSON {type(value).__name__}"
            )
        try:
            return target_class(**value)
        except TypeError as error:
            raise MessageConversionError(
                f"Cannot build {target_class.__name__} from JSON object: {error}"
            ) from error

    @staticmethod
    def _check_builtin(value: Any, target_class: Type[Any]) -> Any:
        if target_class is float and isinstance(value, int) and not isinstance(value, bool):
            return float(value)
        if target_class is int and isinstance(value, bool):
            raise MessageConversionError("Cannot read JSON boolean as int")
        if not isinstance(value, target_class):
            raise MessageConversionError(
                f"Cannot read JSON {type(value).__name__} as {target_class.__name__}"
            )
        return value


class ObjectMessageConverter(MessageConverter):
    """
    Arbitrary picklable objects, pickled and base64 encoded

    Unpickling runs code chosen by the sender: only use this converter on
    queues whose producers are trusted.
    """

    content_type = APPLICATION_SERIALIZED_OBJECT

    def _supports_payload(self, payload: Any) -> bool:
        return payload is not None

    def _to_payload(self, payload: Any) -> str:
        try:
            data = pickle.dumps(payload)
        except (pickle.PicklingError, TypeError, AttributeError) as error:
            raise MessageConversionError(
                f"Could not serialize object of type {type(payload).__name__}: {error}"
            ) from error
        return base64.b64encode(data).decode("utf-8")

    def _from_payload(self, payload: str, target_class: Optional[Type[Any]]) -> Any:
        try:
            value = pickle.loads(base64.b64decode(payload.encode("utf-8"), validate=True))
        except Exception as error:  # unpickling arbitrary bytes can raise almost anything
            raise MessageConversionError(f"Could not deserialize message payload: {error}") from error

        if target_class is not None and not isinstance(value, target_class):
            raise MessageConversionError(
                f"Deserialized {type(value).__name__} is not a {target_class.__name__}"
            )
        return value


class CompositeMessageConverter(MessageConverter):
    """Delegates to a list of converters; the first one that applies wins"""

    def __init__(self, converters: List[MessageConverter]) -> None:
        if not converters:
            raise ValueError("CompositeMessageConverter requires at least one converter")
        self._converters = list(converters)

    @property
    def converters(self) -> List[MessageConverter]:
        return list(self._converters)

    def from_message(self, message: Message, target_class: Optional[Type[Any]] = None) -> Any:
        for converter in self._converters:
            result = converter.from_message(message, target_class)
            if result is not None:
                return result
        return None

    def to_message(self, payload: Any, headers: Optional[Dict[str, Any]] = None) -> Optional[Message]:
        for converter in self._converters:
            result = converter.to_message(payload, headers)
            if result is not None:
                return result
        return None

    def __repr__(self) -> str:
        return f"CompositeMessageConverter({self._converters!r})"


def default_message_converter() -> CompositeMessageConverter:
    """Text payloads as is, everything else as JSON"""
    return CompositeMessageConverter([SimpleMessageConverter(), JsonMessageConverter()])


MESSAGE_CONVERTERS = {
    "json": default_message_converter,
    "simple": SimpleMessageConverter,
    "object": ObjectMessageConverter,
}


def resolve_message_converter(converter: Union[str, MessageConverter, None]) -> MessageConverter:
    """
    Resolve a converter name or instance

    Args:
        converter: 'json', 'simple', 'object', a MessageConverter, or None for the default

    Returns:
        MessageConverter instance
    """
    if converter is None:
        return default_message_converter()
    if isinstance(converter, MessageConverter):
        return converter
    if isinstance(converter, str) and converter in MESSAGE_CONVERTERS:
        return MESSAGE_CONVERTERS[converter]()

    logger.error("resolve_message_converter", {"converter": repr(converter)})
    raise ValueError(
        f"Unknown message converter: {converter!r} (expected one of {sorted(MESSAGE_CONVERTERS)})"
    )
