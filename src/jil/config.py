"""
Configuration for embedding the JIL evaluator.

Supports both camelCase and snake_case property names, and reads limit
overrides from `JIL_*` environment variables.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .evaluator import EvaluationContext
from .extensions import ExtensionResolver
from .limits import DEFAULT_EVALUATION_LIMITS, EvaluationLimits

logger = logging.getLogger("jil.config")

ENV_VAR_MAX_STEPS = "JIL_MAX_STEPS"
ENV_VAR_MAX_EVALUATION_DEPTH = "JIL_MAX_EVALUATION_DEPTH"
ENV_VAR_MAX_DOCUMENT_DEPTH = "JIL_MAX_DOCUMENT_DEPTH"
ENV_VAR_MAX_DOCUMENT_NODES = "JIL_MAX_DOCUMENT_NODES"
ENV_VAR_MAX_CALL_ARGS = "JIL_MAX_CALL_ARGS"
ENV_VAR_MAX_COLLECTION_LENGTH = "JIL_MAX_COLLECTION_LENGTH"

_ENV_FIELDS = {
    ENV_VAR_MAX_STEPS: "max_steps",
    ENV_VAR_MAX_EVALUATION_DEPTH: "max_evaluation_depth",
    ENV_VAR_MAX_DOCUMENT_DEPTH: "max_document_depth",
    ENV_VAR_MAX_DOCUMENT_NODES: "max_document_nodes",
    ENV_VAR_MAX_CALL_ARGS: "max_call_args",
    ENV_VAR_MAX_COLLECTION_LENGTH: "max_collection_length",
}


class JilConfig(BaseModel):
    """Evaluator configuration."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    # Maximum number of evaluation steps
    max_steps: int = Field(
        default=DEFAULT_EVALUATION_LIMITS.max_steps, gt=0, alias="maxSteps"
    )

    # Maximum nesting of active evaluations, function calls included
    max_evaluation_depth: int = Field(
        default=DEFAULT_EVALUATION_LIMITS.max_evaluation_depth,
        gt=0,
        alias="maxEvaluationDepth",
    )

    # Maximum nesting of the input document
    max_document_depth: int = Field(
        default=DEFAULT_EVALUATION_LIMITS.max_document_depth,
        gt=0,
        alias="maxDocumentDepth",
    )

    # Maximum number of expression nodes in a document
    max_document_nodes: int = Field(
        default=DEFAULT_EVALUATION_LIMITS.max_document_nodes,
        gt=0,
        alias="maxDocumentNodes",
    )

    # Maximum arguments in a single call
    max_call_args: int = Field(
        default=DEFAULT_EVALUATION_LIMITS.max_call_args, gt=0, alias="maxCallArgs"
    )

    # Maximum elements in a constructed array or object
    max_collection_length: int = Field(
        default=DEFAULT_EVALUATION_LIMITS.max_collection_length,
        gt=0,
        alias="maxCollectionLength",
    )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> JilConfig:
        """
        Builds a configuration from `JIL_*` environment variables.

        Unset variables keep their defaults.

        Raises:
            ValueError: If a variable is not a positive integer
        """
        environ = os.environ if environ is None else environ

        overrides: dict[str, Any] = {}
        for env_var, field_name in _ENV_FIELDS.items():
            raw = environ.get(env_var)
            if raw is None or not raw.strip():
                continue
            try:
                overrides[field_name] = int(raw.strip())
            except ValueError as e:
                raise ValueError(f"{env_var} must be an integer, got {raw!r}") from e

        if overrides:
            logger.debug("config_from_env", extra={"overrides": overrides})

        try:
            return cls(**overrides)
        except ValidationError as e:
            raise ValueError(f"Invalid JIL configuration from environment: {e}") from e

    def to_limits(self) -> EvaluationLimits:
        return EvaluationLimits(
            max_steps=self.max_steps,
            max_evaluation_depth=self.max_evaluation_depth,
            max_document_depth=self.max_document_depth,
            max_document_nodes=self.max_document_nodes,
            max_call_args=self.max_call_args,
            max_collection_length=self.max_collection_length,
        )


def load_config(config: JilConfig | Mapping[str, Any] | None = None) -> JilConfig:
    """
    Normalizes configuration input.

    Args:
        config: A JilConfig, a mapping with camelCase or snake_case keys, or
            None for the environment-derived configuration
    """
    if config is None:
        return JilConfig.from_env()

    if isinstance(config, JilConfig):
        return config

    return JilConfig.model_validate(dict(config))


def create_context(
    config: JilConfig | Mapping[str, Any] | None = None,
    bindings: Optional[Mapping[str, Any]] = None,
    extension_resolver: Optional[ExtensionResolver] = None,
    types: Optional[Mapping[str, Any]] = None,
) -> EvaluationContext:
    """Builds an evaluation context from configuration and host collaborators."""
    resolved = load_config(config)
    return EvaluationContext(
        bindings=dict(bindings or {}),
        limits=resolved.to_limits(),
        extension_resolver=extension_resolver,
        types=dict(types or {}),
    )
