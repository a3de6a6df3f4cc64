"""Pydantic models for parsing the config.yaml configuration file.

This module contains Pydantic models that correspond to the structure of config.yaml.
These models handle validation and type conversion of the YAML configuration data.
"""

from __future__ import annotations

import os
from typing import Literal

from loguru import logger
from pydantic import BaseModel, Field
from sqlalchemy.engine import URL


class LoggingConfig(BaseModel):
    """Logging configuration model."""

    level: str = Field(default="INFO", description="Logging level")
    format: Literal["json", "plain"] = Field(default="plain", description="Log format")
    file: str | None = Field(default=None, description="Log file path")
    max_size_mb: int = Field(default=10, description="Maximum log file size in MB")
    backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )


class DatabaseConfig(BaseModel):
    """Database connection configuration model.

    Either ``host``/``port`` or ``unix_socket`` locate the server; when a
    socket path is set it takes precedence.
    """

    driver: str = Field(
        default="mysql+pymysql", description="SQLAlchemy dialect and driver"
    )
    username: str = Field(default="root", description="Database username")
    password: str | None = Field(
        default=None,
        description="Database password, preferably substituted from the environment",
    )
    password_env_var: str | None = Field(
        default=None,
        description="Environment variable name containing database password",
    )
    password_file: str | None = Field(
        default=None,
        description="Path to file containing database password",
    )
    host: str = Field(default="127.0.0.1", description="Database server host")
    port: int = Field(default=3306, description="Database server port")
    unix_socket: str | None = Field(
        default=None, description="Local socket path, replaces host and port"
    )
    name: str = Field(default="library", description="Database (schema) name")
    # Both are written into CREATE DATABASE as literals
    charset: str = Field(
        default="utf8", pattern=r"^\w+$", description="Default character set"
    )
    collation: str = Field(
        default="utf8_general_ci", pattern=r"^\w+$", description="Default collation"
    )
    echo: bool = Field(default=False, description="Echo SQL statements")

    @property
    def resolved_password(self) -> str | None:
        """
        Get the database password from the appropriate source.
        1. The explicit ``password`` value
        2. The file named by ``password_file``
        3. The environment variable named by ``password_env_var``
        """
        if self.password:
            return self.password

        if self.password_file:
            try:
                with open(self.password_file, "r") as f:
                    return f.read().strip()
            except OSError as e:
                raise ValueError(
                    "Failed to read database password from file."
                ) from e

        if self.password_env_var:
            password = os.getenv(self.password_env_var)
            if password:
                return password
            logger.warning(
                "Environment variable {} is not set; connecting without a password",
                self.password_env_var,
            )

        return None

    def data_store_name(self, database: str | None = None) -> str:
        """Build the human-readable address of the data store.

        The form is ``user:password@tcp([host]:port)/database`` or
        ``user:password@unix(socket)/database``.
        """
        database = self.name if database is None else database

        cred = ""
        if self.username:
            cred = self.username
            password = self.resolved_password
            if password:
                cred = f"{cred}:{password}"
            cred = f"{cred}@"

        if self.unix_socket:
            return f"{cred}unix({self.unix_socket})/{database}"

        return f"{cred}tcp([{self.host}]:{self.port})/{database}"

    def connection_url(self, database: str | None = None) -> URL:
        """Build the SQLAlchemy URL for ``database``.

        An empty database name connects to the server without selecting a
        database.
        """
        database = self.name if database is None else database

        if self.unix_socket:
            return URL.create(
                self.driver,
                username=self.username or None,
                password=self.resolved_password,
                database=database or None,
                query={"unix_socket": self.unix_socket},
            )

        return URL.create(
            self.driver,
            username=self.username or None,
            password=self.resolved_password,
            host=self.host,
            port=self.port,
            database=database or None,
        )


class AppConfig(BaseModel):
    """Application configuration model."""

    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    name: str = Field(default="bookshelf", description="Application name")


class ConfigData(BaseModel):
    """Root configuration model that matches the config.yaml structure."""

    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig, description="Database configuration"
    )
    app: AppConfig = Field(
        default_factory=AppConfig, description="Application configuration"
    )
