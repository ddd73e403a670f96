"""Configuration loading and validation for colbatch writers.

Settings come from keyword arguments, ``COLBATCH_*`` environment variables
or a YAML file (``load_writer_settings``), validated with Pydantic.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal, get_args

import omegaconf as oc
import pydantic as pdt
import pydantic_settings as pdts

import colbatch.errors as errors
import colbatch.sinks as sinks
import colbatch.vectors as vectors

_CODECS: dict[str, tuple[str, ...]] = {
    "orc": get_args(sinks.OrcCompression),
    "parquet": get_args(sinks.ParquetCompression),
}


class Settings(pdts.BaseSettings, strict=True, frozen=True, extra="forbid"):
    """Base settings class with strict validation."""

    pass


class SinkSettings(Settings):
    """Output file options used by ``writer.write_rows``.

    ``compression`` of None uses the format's default codec; otherwise it
    must be a codec the chosen format supports.
    """

    model_config = pdts.SettingsConfigDict(env_prefix="COLBATCH_SINK_")

    format: Literal["orc", "parquet"] = "orc"
    compression: str | None = None

    @pdt.model_validator(mode="after")
    def validate_compression(self) -> SinkSettings:
        """Ensure compression names a codec of the chosen format."""
        codecs = _CODECS[self.format]
        if self.compression is not None and self.compression not in codecs:
            raise ValueError(
                f"compression '{self.compression}' is not supported by {self.format}: {list(codecs)}"
            )
        return self


class WriterSettings(Settings):
    """Root configuration for BatchWriter.

    Example colbatch.yaml:
        strict: false
        batch_capacity: 4096
        sink:
          format: parquet
          compression: zstd
    """

    model_config = pdts.SettingsConfigDict(env_prefix="COLBATCH_")

    strict: bool = False  # Raise on mismatched values instead of writing null
    batch_capacity: int = pdt.Field(default=vectors.DEFAULT_BATCH_SIZE, ge=1)
    sink: SinkSettings = pdt.Field(default_factory=SinkSettings)


def load_writer_settings(path: Path | str = Path("colbatch.yaml")) -> WriterSettings:
    """Load and validate writer configuration from a YAML file.

    Args:
        path: Path to the YAML file.

    Returns:
        Validated WriterSettings instance.

    Raises:
        ConfigNotFoundError: If config file doesn't exist.
        ConfigValidationError: If config fails validation.
    """
    path = Path(path)

    if not path.exists():
        raise errors.ConfigNotFoundError(str(path))

    try:
        config = oc.OmegaConf.load(path)
        config_dict = oc.OmegaConf.to_container(config, resolve=True)
        return WriterSettings.model_validate(config_dict or {})
    except pdt.ValidationError as e:
        raise errors.ConfigValidationError(
            path=str(path),
            details=_format_validation_errors(e),
        ) from e
    except oc.errors.OmegaConfBaseException as e:
        raise errors.ConfigValidationError(
            path=str(path),
            details=str(e),
        ) from e


def _format_validation_errors(error: pdt.ValidationError) -> str:
    """Format Pydantic validation errors into readable messages."""
    messages = []
    for err in error.errors():
        loc = ".".join(str(x) for x in err["loc"])
        msg = err["msg"]
        messages.append(f"  - {loc}: {msg}")
    return "\n".join(messages)
