"""
Settings model for the remote image editor.

Values come from the process environment or a ``lambdaimage.env`` file.
The resulting object is handed to invokers, key mappers and editors;
nothing below this module looks at the environment on its own.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from botocore.config import Config
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

LAMBDAIMAGE_ENV_FILENAME = "lambdaimage.env"
DEFAULT_FUNCTION_NAME = "image_processor-production"
DEFAULT_QUALITY = 82


@dataclass
class LambdaClientConfig:
    """Transport tuning for the Lambda client."""

    service_name: str = "lambda"
    max_pool_connections: int = 10
    read_timeout: int = 120
    connect_timeout: int = 10
    max_retries: int = 3

    def to_boto3_config(self, extra: Optional[Dict[str, Any]] = None) -> Config:
        """Convert to boto3 Config object."""
        params: Dict[str, Any] = {
            "retries": {"max_attempts": self.max_retries, "mode": "standard"},
            "connect_timeout": self.connect_timeout,
            "read_timeout": self.read_timeout,
            "max_pool_connections": self.max_pool_connections,
        }
        if extra:
            params.update(extra)
        return Config(**params)


class EditorConfig(BaseSettings):
    """
    Settings model for the remote editor via environment variables
    or other settings sources supported by `pydantic-settings`.
    """

    AWS_LAMBDA_IMAGE_BUCKET: Optional[str] = None
    AWS_LAMBDA_IMAGE_KEY: Optional[SecretStr] = None
    AWS_LAMBDA_IMAGE_SECRET: Optional[SecretStr] = None
    AWS_LAMBDA_IMAGE_REGION: Optional[str] = None
    AWS_LAMBDA_IMAGE_FUNCTION: str = DEFAULT_FUNCTION_NAME
    AWS_LAMBDA_IMAGE_FUNCTION_URL: Optional[str] = None

    UPLOAD_BASEDIR: Optional[str] = None
    UPLOAD_BASEURL: Optional[str] = None

    IMAGE_DEFAULT_QUALITY: int = Field(default=DEFAULT_QUALITY, ge=1, le=100)
    IMAGE_OUTPUT_FORMATS: Dict[str, str] = Field(default_factory=dict)

    model_config = SettingsConfigDict(
        env_file=LAMBDAIMAGE_ENV_FILENAME,
        extra="ignore",
    )

    @classmethod
    def from_env(cls, path: Optional[str] = None) -> "EditorConfig":
        """Create config after loading a dotenv file into the environment."""
        from dotenv import load_dotenv

        load_dotenv(path or os.path.join(os.getcwd(), LAMBDAIMAGE_ENV_FILENAME))
        return cls()

    def is_available(self) -> bool:
        """Whether everything needed to reach the remote function is set."""
        return all(
            [
                self.AWS_LAMBDA_IMAGE_BUCKET,
                self.AWS_LAMBDA_IMAGE_KEY is not None,
                self.AWS_LAMBDA_IMAGE_SECRET is not None,
                self.AWS_LAMBDA_IMAGE_REGION,
            ]
        )

    def validate_credentials(self) -> None:
        if not self.is_available():
            raise ValueError("Lambda image editor credentials are missing.")

    def get_key_id(self) -> Optional[str]:
        if self.AWS_LAMBDA_IMAGE_KEY is None:
            return None
        return self.AWS_LAMBDA_IMAGE_KEY.get_secret_value()

    def get_secret_key(self) -> Optional[str]:
        if self.AWS_LAMBDA_IMAGE_SECRET is None:
            return None
        return self.AWS_LAMBDA_IMAGE_SECRET.get_secret_value()
