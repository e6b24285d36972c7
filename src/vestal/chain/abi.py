"""
Contract artifacts - Load compiled interface descriptions and encode calls.

An artifact is the JSON document a contract build emits (Truffle layout):
the ABI plus a ``networks`` registry mapping network ids to deployment
addresses. Artifacts are validated against a bundled JSON Schema before use.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import jsonschema
from eth_abi import decode, encode
from eth_abi.exceptions import EncodingError
from eth_hash.auto import keccak
from eth_utils import to_checksum_address
from jsonschema import FormatChecker

from ..errors import ConfigError, ResolutionError

ARTIFACT_SCHEMA = Path(__file__).resolve().parent.parent / "schemas" / "contract.artifact.schema.json"


class ArtifactValidationError(ConfigError):
    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message, step="load artifact")
        self.errors = errors or []


def _format_error(error: jsonschema.ValidationError) -> str:
    location = "/".join(str(part) for part in error.path) or "<root>"
    return f"{location}: {error.message}"


def validate_artifact(payload: dict[str, Any], schema_path: Path = ARTIFACT_SCHEMA) -> None:
    with schema_path.open("r", encoding="utf-8") as f:
        schema = json.load(f)
    validator_cls = jsonschema.validators.validator_for(schema)
    validator_cls.check_schema(schema)
    validator = validator_cls(schema, format_checker=FormatChecker())
    errors = sorted(validator.iter_errors(payload), key=lambda e: [str(p) for p in e.path])
    if errors:
        raise ArtifactValidationError(
            "Contract artifact failed validation: "
            + "; ".join(_format_error(err) for err in errors),
            errors=[_format_error(err) for err in errors],
        )


def _canonical_type(param: dict[str, Any]) -> str:
    """ABI type as it appears in a function signature (tuples expanded)."""
    typ = param["type"]
    if typ.startswith("tuple"):
        inner = ",".join(_canonical_type(c) for c in param.get("components", []))
        return f"({inner}){typ[len('tuple'):]}"
    return typ


def function_selector(signature: str) -> bytes:
    """First 4 bytes of keccak256 over the canonical signature."""
    # NOTE: Keccak-256 != SHA3-256 (NIST). Never use hashlib.sha3_256 here.
    return keccak(signature.encode("utf-8"))[:4]


@dataclass(frozen=True)
class ContractArtifact:
    contract_name: str
    abi: list[dict[str, Any]]
    networks: dict[str, dict[str, Any]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "ContractArtifact":
        validate_artifact(payload)
        return cls(
            contract_name=payload.get("contractName", "Contract"),
            abi=payload["abi"],
            networks=payload.get("networks", {}),
        )

    def function(self, name: str) -> dict[str, Any]:
        for entry in self.abi:
            if entry.get("type") == "function" and entry.get("name") == name:
                return entry
        raise ConfigError(f"Function {name} not found in {self.contract_name} ABI")

    def has_function(self, name: str) -> bool:
        return any(
            entry.get("type") == "function" and entry.get("name") == name
            for entry in self.abi
        )

    def address_for(self, network_id: int) -> str:
        """Deployment address recorded for ``network_id``.

        Raises:
            ResolutionError: If the registry has no deployment for the network
        """
        deployment = self.networks.get(str(network_id))
        if not deployment:
            known = ", ".join(sorted(self.networks)) or "none"
            raise ResolutionError(
                f"{self.contract_name} has no deployment on network {network_id} "
                f"(recorded networks: {known})",
                step="resolve contract",
            )
        return to_checksum_address(deployment["address"])

    def encode_call(self, function_name: str, args: list) -> str:
        """ABI-encode a function call to 0x-prefixed hex calldata."""
        func = self.function(function_name)
        input_types = [_canonical_type(inp) for inp in func.get("inputs", [])]
        if len(args) != len(input_types):
            raise ConfigError(
                f"{function_name} takes {len(input_types)} argument(s), got {len(args)}"
            )
        selector = function_selector(f"{function_name}({','.join(input_types)})")
        try:
            encoded_args = encode(input_types, args) if args else b""
        except EncodingError as exc:
            raise ConfigError(f"Cannot encode arguments for {function_name}: {exc}") from exc
        return "0x" + selector.hex() + encoded_args.hex()

    def decode_result(self, function_name: str, data: Optional[str]) -> Any:
        """
        ABI-decode a function call result.

        Returns:
            Decoded result (single value or tuple), or None for empty data
        """
        func = self.function(function_name)
        output_types = [_canonical_type(out) for out in func.get("outputs", [])]
        if not output_types or not data:
            return None

        raw = bytes.fromhex(data[2:]) if data.startswith("0x") else bytes.fromhex(data)
        decoded = decode(output_types, raw)

        if len(decoded) == 1:
            return decoded[0]
        return decoded


def load_artifact(path: Path) -> ContractArtifact:
    """
    Load and validate a compiled contract artifact.

    Args:
        path: Path to the artifact JSON (e.g., build/contracts/Vesting.json)

    Raises:
        ConfigError: If the file is missing or not valid JSON
        ArtifactValidationError: If the document does not match the schema
    """
    if not path.is_file():
        raise ConfigError(
            f"Contract artifact not found: {path}. Compile the contracts first.",
            step="load artifact",
        )

    try:
        with path.open("r", encoding="utf-8") as f:
            payload = json.load(f)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Contract artifact {path} is not valid JSON: {exc}", step="load artifact") from exc

    if not isinstance(payload, dict):
        raise ArtifactValidationError(f"Contract artifact {path} must be a JSON object")

    return ContractArtifact.from_dict(payload)
