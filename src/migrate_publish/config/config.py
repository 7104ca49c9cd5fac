"""Configuration management for the publish stage."""

from typing import Any, Dict, Literal, Optional
from pathlib import Path
import os

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator
import yaml
from dotenv import load_dotenv


class GerritConfig(BaseModel):
    """Configuration for a Gerrit host."""

    url: str = Field(..., description='Gerrit URL, optionally with a project path')
    credentials_file: Optional[str] = Field(
        default=None, description='git-credential-store file with host credentials'
    )
    use_git_credential_helper: bool = Field(
        default=False, description='Resolve credentials with git credential fill'
    )
    username: Optional[str] = Field(default=None, description='HTTP user name')
    password: Optional[SecretStr] = Field(default=None, description='HTTP password')
    timeout: int = Field(default=30, description='Request timeout in seconds')

    @field_validator('url')
    @classmethod
    def validate_url(cls, v):
        """Validate Gerrit URL format."""
        if not v.startswith(('http://', 'https://')):
            raise ValueError('URL must start with http:// or https://')
        return v.rstrip('/')

    @field_validator('timeout')
    @classmethod
    def validate_timeout(cls, v):
        """Validate timeout is positive."""
        if v <= 0:
            raise ValueError('Timeout must be positive')
        return v


class DestinationConfig(BaseModel):
    """Publish destination configuration."""

    type: Literal['git', 'folder'] = Field(
        default='git', description='Destination kind'
    )
    path: str = Field(..., description='Repository or folder path')
    branch: str = Field(default='main', description='Branch to publish to (git)')
    label_name: str = Field(
        default='GitOrigin-RevId',
        description='Label recording the origin reference of each publish',
    )
    committer_name: str = Field(
        default='Migration Publisher', description='Committer name'
    )
    committer_email: str = Field(
        default='publisher@migration.local', description='Committer email'
    )
    create: bool = Field(
        default=False, description='Initialize the destination if it does not exist'
    )

    @field_validator('label_name')
    @classmethod
    def validate_label_name(cls, v):
        """Labels become commit trailers, so they must be single tokens."""
        if not v or any(c in v for c in ' :\n'):
            raise ValueError('Label name must be a non-empty token without spaces or colons')
        return v

    @field_validator('branch')
    @classmethod
    def validate_branch(cls, v):
        """Validate branch name."""
        import re

        if not re.match(r'^[a-zA-Z0-9._/-]+$', v) or v.startswith('/'):
            raise ValueError(
                'Branch name can only contain alphanumeric characters, dots, dashes, slashes, and underscores'
            )
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default='INFO', description='Log level')
    file: Optional[str] = Field(default=None, description='Log file path')
    format: str = Field(
        default='{time:YYYY-MM-DD HH:mm:ss} | {level} | {name} | {message}',
        description='Log format',
    )

    @field_validator('level')
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'Log level must be one of: {valid_levels}')
        return v.upper()


class Config(BaseModel):
    """Main configuration class for the publish stage."""

    model_config = ConfigDict(extra='forbid')

    gerrit: Optional[GerritConfig] = Field(
        default=None, description='Gerrit host for review operations'
    )
    destination: Optional[DestinationConfig] = Field(
        default=None, description='Publish destination'
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description='Logging settings'
    )

    @classmethod
    def from_file(cls, config_path: str) -> 'Config':
        """Load configuration from YAML file."""
        config_file = Path(config_path)

        if not config_file.exists():
            raise FileNotFoundError(f'Configuration file not found: {config_path}')

        with open(config_file, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f) or {}

        return cls(**config_data)

    @classmethod
    def from_env(cls) -> 'Config':
        """Load configuration from environment variables."""
        # Load .env file if it exists
        load_dotenv()

        config_data: Dict[str, Any] = {
            'logging': {
                'level': os.getenv('LOG_LEVEL', 'INFO'),
                'file': os.getenv('LOG_FILE'),
            },
        }

        if os.getenv('GERRIT_URL'):
            config_data['gerrit'] = {
                'url': os.getenv('GERRIT_URL'),
                'credentials_file': os.getenv('GERRIT_CREDENTIALS_FILE'),
                'username': os.getenv('GERRIT_USERNAME'),
                'password': os.getenv('GERRIT_PASSWORD'),
                'use_git_credential_helper': os.getenv(
                    'GERRIT_USE_GIT_CREDENTIALS', 'false'
                ).lower()
                == 'true',
                'timeout': int(os.getenv('GERRIT_TIMEOUT', 30)),
            }

        if os.getenv('DESTINATION_PATH'):
            config_data['destination'] = {
                'type': os.getenv('DESTINATION_TYPE', 'git'),
                'path': os.getenv('DESTINATION_PATH'),
                'branch': os.getenv('DESTINATION_BRANCH', 'main'),
                'label_name': os.getenv('DESTINATION_LABEL', 'GitOrigin-RevId'),
                'committer_name': os.getenv(
                    'DESTINATION_COMMITTER_NAME', 'Migration Publisher'
                ),
                'committer_email': os.getenv(
                    'DESTINATION_COMMITTER_EMAIL', 'publisher@migration.local'
                ),
                'create': os.getenv('DESTINATION_CREATE', 'false').lower() == 'true',
            }

        # Remove None values
        config_data = cls._remove_none_values(config_data)

        return cls(**config_data)

    @staticmethod
    def _remove_none_values(data: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively remove None values from dictionary."""
        if isinstance(data, dict):
            return {
                k: Config._remove_none_values(v)
                for k, v in data.items()
                if v is not None
            }
        return data

    def to_file(self, config_path: str) -> None:
        """Save configuration to YAML file."""
        config_file = Path(config_path)
        config_file.parent.mkdir(parents=True, exist_ok=True)

        data = self.model_dump(mode='json', exclude_none=True)
        if self.gerrit is not None and self.gerrit.password is not None:
            data['gerrit']['password'] = self.gerrit.password.get_secret_value()

        with open(config_file, 'w', encoding='utf-8') as f:
            yaml.dump(data, f, default_flow_style=False, indent=2, sort_keys=False)

    @staticmethod
    def create_template(output_path: str) -> None:
        """Create a configuration template file."""
        template_config = {
            'gerrit': {
                'url': 'https://gerrit.example.com/team/project',
                'credentials_file': '~/.git-credentials',
                'timeout': 30,
            },
            'destination': {
                'type': 'git',
                'path': '/srv/migration/destination.git',
                'branch': 'main',
                'label_name': 'GitOrigin-RevId',
                'committer_name': 'Migration Publisher',
                'committer_email': 'publisher@migration.local',
                'create': False,
            },
            'logging': {
                'level': 'INFO',
                'file': 'publish.log',
                'format': '{time:YYYY-MM-DD HH:mm:ss} | {level} | {name} | {message}',
            },
        }

        config_file = Path(output_path)
        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, 'w', encoding='utf-8') as f:
            yaml.dump(
                template_config, f, default_flow_style=False, indent=2, sort_keys=False
            )
