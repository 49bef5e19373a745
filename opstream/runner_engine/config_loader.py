"""
Config Loader - reads run descriptions from YAML or JSON
"""
import json
import numbers
import logging
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from ..models import RunConfig, RunSpec
from .coordinator import validate_run_config
from .error_handler import ArgumentError

logger = logging.getLogger(__name__)

RUN_FIELDS = {f.name for f in fields(RunConfig)}
TOP_LEVEL_KEYS = {'run', 'workload', 'client'}


class ConfigLoader:
    """Utility class for loading and validating run configurations"""

    @staticmethod
    def load_from_file(file_path: Union[str, Path]) -> RunSpec:
        """Load a run configuration from a YAML or JSON file."""
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, 'r') as f:
            if path.suffix in ['.yaml', '.yml']:
                try:
                    data = yaml.safe_load(f)
                except yaml.YAMLError as e:
                    raise ArgumentError(f"Invalid YAML syntax in {path}: {e}")
            elif path.suffix == '.json':
                try:
                    data = json.load(f)
                except json.JSONDecodeError as e:
                    raise ArgumentError(f"Invalid JSON in {path}: {e}")
            else:
                raise ArgumentError(f"Unsupported config format: {path.suffix}")

        logger.debug(f"Loaded configuration from {path}")
        return ConfigLoader.from_dict(data)

    @staticmethod
    def load_from_string(config_text: str) -> RunSpec:
        """Load a run configuration from a YAML string."""
        try:
            data = yaml.safe_load(config_text)
        except yaml.YAMLError as e:
            raise ArgumentError(f"Invalid YAML syntax: {e}")
        return ConfigLoader.from_dict(data)

    @staticmethod
    def from_dict(data: Any) -> RunSpec:
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ArgumentError(f"Configuration must be a mapping, got {type(data).__name__}")

        unknown = set(data) - TOP_LEVEL_KEYS
        if unknown:
            raise ArgumentError(f"Unknown configuration sections: {sorted(unknown)}")

        run = data.get('run') or {}
        if not isinstance(run, dict):
            raise ArgumentError("'run' must be a mapping")
        unknown = set(run) - RUN_FIELDS
        if unknown:
            raise ArgumentError(f"Unknown run options: {sorted(unknown)}")

        workload = _section(data.get('workload'), 'workload', {'name', 'params', 'time_limit', 'ops'})
        client = _section(data.get('client'), 'client', {'name', 'params'})

        spec = RunSpec(
            config=RunConfig(**run),
            workload=workload.get('name', 'list-append'),
            workload_params=workload.get('params') or {},
            client=client.get('name', 'noop'),
            client_params=client.get('params') or {},
            time_limit=workload.get('time_limit'),
            ops=workload.get('ops')
        )
        ConfigLoader.validate(spec)
        return spec

    @staticmethod
    def validate(spec: RunSpec) -> bool:
        """Validate a run configuration; raises ArgumentError on the first problem found."""
        from ..clients import CLIENTS
        from ..workloads import WORKLOADS

        config = spec.config
        if not isinstance(config.nodes, list) or not all(isinstance(n, str) for n in config.nodes):
            raise ArgumentError(f"run.nodes must be a list of addresses, got {config.nodes!r}")
        for name in ('create_reports', 'keep_history'):
            if not isinstance(getattr(config, name), bool):
                raise ArgumentError(f"run.{name} must be a boolean, got {getattr(config, name)!r}")
        validate_run_config(config)

        if spec.workload not in WORKLOADS:
            raise ArgumentError(f"Unknown workload {spec.workload!r}, expected one of {sorted(WORKLOADS)}")
        if spec.client not in CLIENTS:
            raise ArgumentError(f"Unknown client {spec.client!r}, expected one of {sorted(CLIENTS)}")
        if not isinstance(spec.workload_params, dict):
            raise ArgumentError("workload.params must be a mapping")
        if not isinstance(spec.client_params, dict):
            raise ArgumentError("client.params must be a mapping")

        if spec.time_limit is not None:
            if isinstance(spec.time_limit, bool) or not isinstance(spec.time_limit, numbers.Real) or spec.time_limit <= 0:
                raise ArgumentError(f"workload.time_limit must be a positive number, got {spec.time_limit!r}")
        if spec.ops is not None:
            if isinstance(spec.ops, bool) or not isinstance(spec.ops, int) or spec.ops < 0:
                raise ArgumentError(f"workload.ops must be a non-negative integer, got {spec.ops!r}")
        if spec.time_limit is None and spec.ops is None:
            raise ArgumentError("workload needs time_limit or ops, built-in workloads are infinite")

        return True


def _section(value: Any, name: str, allowed: set) -> Dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, str):
        return {'name': value}
    if not isinstance(value, dict):
        raise ArgumentError(f"'{name}' must be a name or a mapping")
    unknown = set(value) - allowed
    if unknown:
        raise ArgumentError(f"Unknown {name} options: {sorted(unknown)}")
    return value
