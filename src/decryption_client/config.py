"""Configuration for the decryption client.

This module provides the configuration model that selects crypto policy,
dispatch concurrency, and fixture locations for a decryption session.
Every toggle is an explicit value passed at construction time.
"""

import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

MIN_RSA_KEY_BITS = 2048


class VerificationPolicy(str, Enum):
    """What to do when the root commitment fails verification."""

    ABORT_ON_FAILURE = "abort_on_failure"
    PROCEED_UNAUTHENTICATED = "proceed_unauthenticated"


class OutcomeOrder(str, Enum):
    """Order in which batch outcomes are yielded."""

    INPUT = "input"  # Proof ledger order
    COMPLETION = "completion"  # As requests finish


class ClientConfig(BaseModel):
    """Configuration for a decryption session.

    Attributes:
        min_key_bits: Smallest accepted RSA modulus for attested keys
        nonce_size: Size in bytes of freshness nonces sent to the oracle
        verification_policy: Behavior when commitment verification fails
        max_concurrent: Concurrent decrypt requests (1 = sequential)
        outcome_order: Yield outcomes in ledger order or completion order
        run_padding_self_test: Round-trip sample records through the oracle
            under both padding schemes before dispatching the batch
        oaep_label: Label bound into RSA-OAEP record encryption
        records_path: Ciphertext table location
        proofs_path: Proof table location

    Example:
        >>> config = ClientConfig(max_concurrent=4)
        >>> config.verification_policy
        <VerificationPolicy.ABORT_ON_FAILURE: 'abort_on_failure'>
    """

    min_key_bits: int = MIN_RSA_KEY_BITS
    nonce_size: int = Field(default=32, ge=16, le=1024)
    verification_policy: VerificationPolicy = VerificationPolicy.ABORT_ON_FAILURE
    max_concurrent: int = Field(default=1, ge=1, le=64)
    outcome_order: OutcomeOrder = OutcomeOrder.INPUT
    run_padding_self_test: bool = False
    oaep_label: str = "record"

    records_path: Path = Path("test_set/records.csv")
    proofs_path: Path = Path("test_set/records_proofs.csv")

    model_config = {"extra": "forbid"}

    @field_validator("min_key_bits")
    @classmethod
    def check_min_key_bits(cls, v: int) -> int:
        """Refuse to lower the key size floor below policy."""
        if v < MIN_RSA_KEY_BITS:
            raise ValueError(
                f"min_key_bits must be at least {MIN_RSA_KEY_BITS}, got {v}"
            )
        return v

    @field_validator("records_path", "proofs_path", mode="before")
    @classmethod
    def convert_paths(cls, v):
        """Convert string paths to Path objects."""
        if isinstance(v, str):
            return Path(v)
        return v

    @property
    def oaep_label_bytes(self) -> bytes:
        return self.oaep_label.encode("utf-8")

    @classmethod
    def from_env(cls, prefix: str = "DECRYPTION_CLIENT_") -> "ClientConfig":
        """Create config from environment variables.

        Environment variables:
            {prefix}MIN_KEY_BITS: Minimum RSA key size
            {prefix}NONCE_SIZE: Nonce size in bytes
            {prefix}VERIFICATION_POLICY: abort_on_failure | proceed_unauthenticated
            {prefix}MAX_CONCURRENT: Concurrent decrypt requests
            {prefix}OUTCOME_ORDER: input | completion
            {prefix}RUN_PADDING_SELF_TEST: 1/true/yes to enable
            {prefix}OAEP_LABEL: RSA-OAEP label
            {prefix}RECORDS_PATH: Ciphertext table path
            {prefix}PROOFS_PATH: Proof table path

        Args:
            prefix: Environment variable prefix (default: DECRYPTION_CLIENT_)

        Returns:
            ClientConfig with values from environment
        """
        kwargs: Dict[str, Any] = {}

        for name in ("min_key_bits", "nonce_size", "max_concurrent"):
            value = os.getenv(f"{prefix}{name.upper()}")
            if value:
                kwargs[name] = int(value)

        policy = os.getenv(f"{prefix}VERIFICATION_POLICY")
        if policy:
            kwargs["verification_policy"] = VerificationPolicy(policy.lower())

        order = os.getenv(f"{prefix}OUTCOME_ORDER")
        if order:
            kwargs["outcome_order"] = OutcomeOrder(order.lower())

        self_test = os.getenv(f"{prefix}RUN_PADDING_SELF_TEST")
        if self_test:
            kwargs["run_padding_self_test"] = self_test.strip().lower() in ("1", "true", "yes")

        label = os.getenv(f"{prefix}OAEP_LABEL")
        if label:
            kwargs["oaep_label"] = label

        for name in ("records_path", "proofs_path"):
            value = os.getenv(f"{prefix}{name.upper()}")
            if value:
                kwargs[name] = Path(value)

        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, path: Path, section: Optional[str] = None) -> "ClientConfig":
        """Create config from a YAML file.

        Args:
            path: YAML file path
            section: Optional top-level key holding the client settings

        Returns:
            ClientConfig with values from the file

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file does not contain a mapping
        """
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if section is not None:
            data = data.get(section) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Expected a mapping in {path}, got {type(data).__name__}")

        return cls(**data)
