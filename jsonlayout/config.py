from pydantic import BaseModel, field_validator
from pydantic_settings import BaseSettings

from jsonlayout.services.names import PROPERTY_NAME_PREFIX
from jsonlayout.validation import validate_prefix, validate_property_name


class PropertyConfig(BaseModel):
    name: str
    template: str

    @field_validator("name")
    @classmethod
    def _check_name(cls, v: str) -> str:
        return validate_property_name(v)


class Settings(BaseSettings):
    log_level: str = "INFO"

    # Extra JSON fields, e.g.
    # JSONLAYOUT_PROPERTIES='[{"name": "host", "template": "${machinename}"}]'
    properties: list[PropertyConfig] = []
    variables: dict[str, str] = {}
    property_name_prefix: str = PROPERTY_NAME_PREFIX

    # Diagnostics about the layout itself (render failures)
    internal_log_level: str = "WARNING"
    internal_log_file: str = ""
    internal_log_to_stderr: bool = False

    @field_validator("property_name_prefix")
    @classmethod
    def _check_prefix(cls, v: str) -> str:
        return validate_prefix(v)

    class Config:
        env_prefix = "JSONLAYOUT_"
        env_file = ".env"
        extra = "ignore"


settings = Settings()
