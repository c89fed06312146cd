"""Configuration of a chain together with its prover."""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ibcrelay.chain import ProvableChain

TYPE_KEY = "@type"


def _message_fields(message: Any) -> dict[str, Any]:
    to_dict = getattr(message, "to_dict", None)
    if callable(to_dict):
        return dict(to_dict())
    if dataclasses.is_dataclass(message) and not isinstance(message, type):
        return dataclasses.asdict(message)
    raise TypeError(f"cannot encode {type(message).__name__} as JSON")


class Codec:
    """Encodes registered configuration messages as JSON tagged with a type URL."""

    def __init__(self) -> None:
        self._types: dict[str, type] = {}
        self._urls: dict[type, str] = {}

    def register(self, type_url: str, cls: type) -> None:
        """Make ``cls`` known under ``type_url``."""
        self._types[type_url] = cls
        self._urls[cls] = type_url

    def marshal_json_any(self, message: Any) -> str:
        """Return the JSON text of ``message`` with its type URL under ``@type``."""
        type_url = self._urls.get(type(message))
        if type_url is None:
            raise ValueError(f"type {type(message).__name__} is not registered")
        return json.dumps({TYPE_KEY: type_url, **_message_fields(message)})

    def unmarshal_json_any(self, data: str | bytes | Mapping[str, Any]) -> Any:
        """Decode a message from JSON text or an already parsed JSON object."""
        if isinstance(data, (str, bytes, bytearray)):
            data = json.loads(data)
        if not isinstance(data, Mapping):
            raise ValueError("expected a JSON object")
        fields = dict(data)
        type_url = fields.pop(TYPE_KEY, None)
        if type_url is None:
            raise ValueError(f"missing {TYPE_KEY} in JSON object")
        cls = self._types.get(type_url)
        if cls is None:
            raise ValueError(f"unable to resolve type URL {type_url}")
        from_dict = getattr(cls, "from_dict", None)
        try:
            return from_dict(fields) if callable(from_dict) else cls(**fields)
        except TypeError as exc:
            raise ValueError(f"cannot decode {type_url}: {exc}") from exc


@dataclass
class ChainProverConfig:
    """The JSON configuration of a chain and of its prover, with their decoded forms."""

    chain: Any = None
    prover: Any = None
    _chain_config: Any = field(default=None, init=False, repr=False, compare=False)
    _prover_config: Any = field(default=None, init=False, repr=False, compare=False)

    @classmethod
    def from_configs(cls, codec: Codec, chain: Any, prover: Any) -> ChainProverConfig:
        """Build a configuration from decoded chain and prover configs."""
        config = cls(
            chain=json.loads(codec.marshal_json_any(chain)),
            prover=json.loads(codec.marshal_json_any(prover)),
        )
        config._chain_config = chain
        config._prover_config = prover
        return config

    def init(self, codec: Codec) -> None:
        """Decode the chain and prover configs from their JSON."""
        chain = codec.unmarshal_json_any(self.chain)
        prover = codec.unmarshal_json_any(self.prover)
        self._chain_config = chain
        self._prover_config = prover

    def get_chain_config(self) -> Any:
        """Return the decoded chain config."""
        if self._chain_config is None:
            raise ValueError("chain is nil")
        return self._chain_config

    def get_prover_config(self) -> Any:
        """Return the decoded prover config."""
        if self._prover_config is None:
            raise ValueError("client is nil")
        return self._prover_config

    def build(self) -> ProvableChain:
        """Build the chain, then its prover, and pair them."""
        chain_config = self.get_chain_config()
        prover_config = self.get_prover_config()
        chain = chain_config.build()
        prover = prover_config.build(chain)
        return ProvableChain(chain, prover)

    def to_dict(self) -> dict[str, Any]:
        return {"chain": self.chain, "prover": self.prover}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ChainProverConfig:
        return cls(chain=data.get("chain"), prover=data.get("prover"))