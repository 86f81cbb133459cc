"""Configuration and environment loading."""

from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

load_dotenv()


class Settings(BaseSettings):
    """Disassembler settings loaded from environment variables."""

    # Relocation discovery
    pair_window: int = Field(default=8, ge=1, le=32, alias="SID_DISASM_PAIR_WINDOW")
    max_propagation_passes: int | None = Field(
        default=10, ge=1, alias="SID_DISASM_MAX_PASSES"
    )
    # SID_DISASM_UNBOUNDED=true overrides the pass limit
    unbounded_propagation: bool = Field(default=False, alias="SID_DISASM_UNBOUNDED")

    # Output layout
    comment_column: int = Field(default=96, ge=8, alias="SID_DISASM_COMMENT_COLUMN")
    bytes_per_line: int = Field(default=16, ge=1, alias="SID_DISASM_BYTES_PER_LINE")

    # Paths
    output_dir: Path = Field(default=Path("."), alias="SID_DISASM_OUTPUT_DIR")

    model_config = {"env_file": ".env", "extra": "ignore", "populate_by_name": True}

    @property
    def propagation_unbounded(self) -> bool:
        """True when relocation propagation runs until the closure is complete."""
        return self.unbounded_propagation or self.max_propagation_passes is None

    @property
    def pass_limit(self) -> int | None:
        """Pass cap handed to the propagator; None when unbounded."""
        return None if self.propagation_unbounded else self.max_propagation_passes

    def output_path_for(self, sid_path: Path) -> Path:
        """Default .asm destination for a SID file."""
        return self.output_dir / sid_path.with_suffix(".asm").name


_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Get application settings singleton."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
