"""Mapper configuration."""

from importmapper.config.loader import ConfigSource, load_mapper_config
from importmapper.config.schema import Environment, MapperConfig

__all__ = ["ConfigSource", "Environment", "MapperConfig", "load_mapper_config"]
