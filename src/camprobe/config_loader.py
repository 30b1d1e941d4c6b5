"""
Configuration loader for the camprobe discovery server
Loads and validates configuration from YAML files
"""

import yaml
import logging
import math
from typing import Dict, Any
from pathlib import Path
from datetime import datetime
import pytz

logger = logging.getLogger(__name__)

def load_config(config_path: str = "config/config.yaml") -> Dict[str, Any]:
    """
    Load configuration from YAML file with validation
    """
    try:
        config_file = Path(config_path)
        if not config_file.exists():
            logger.error(f"Configuration file not found: {config_path}")
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_file, 'r') as f:
            config = yaml.safe_load(f) or {}

        # Validate required sections
        _validate_config(config)

        # Apply defaults
        config = _apply_defaults(config)

        logger.info(f"Configuration loaded from {config_path}")
        return config

    except Exception as e:
        logger.error(f"Failed to load configuration: {e}")
        raise

def _validate_config(config: Dict) -> None:
    """Validate that required configuration sections exist"""
    if not isinstance(config, dict):
        raise ValueError("Configuration must be a mapping")

    if 'discovery' not in config or not isinstance(config['discovery'], dict):
        raise ValueError("Missing required configuration section: discovery")

    discovery = config['discovery']
    timeout = discovery.get('timeout_seconds', 5)
    if (isinstance(timeout, bool) or not isinstance(timeout, (int, float))
            or not math.isfinite(timeout) or timeout <= 0):
        raise ValueError("discovery.timeout_seconds must be a positive finite number")

    interval = discovery.get('scan_interval_minutes', 0)
    if isinstance(interval, bool) or not isinstance(interval, (int, float)) or interval < 0:
        raise ValueError("discovery.scan_interval_minutes must not be negative")

    ttl = discovery.get('multicast_ttl', 2)
    if isinstance(ttl, bool) or not isinstance(ttl, int) or not 1 <= ttl <= 255:
        raise ValueError("discovery.multicast_ttl must be an integer between 1 and 255")

    interfaces = discovery.get('interfaces', [])
    if interfaces is not None and not isinstance(interfaces, list):
        raise ValueError("discovery.interfaces must be a list of interface names")

    # Validate logging timezone if present
    tz_name = config.get('logging', {}).get('timezone')
    if tz_name:
        try:
            pytz.timezone(tz_name)
        except pytz.UnknownTimeZoneError:
            raise ValueError(f"Unknown logging timezone: {tz_name}")

def _apply_defaults(config: Dict) -> Dict:
    """Apply default values to configuration"""

    # Discovery defaults
    discovery_defaults = {
        'timeout_seconds': 5,
        'scan_interval_minutes': 15,
        'interfaces': [],
        'include_loopback': False,
        'multicast_ttl': 2
    }
    for key, default_value in discovery_defaults.items():
        if config['discovery'].get(key) is None:
            config['discovery'][key] = default_value

    # API defaults
    if 'api' not in config:
        config['api'] = {}
    api_defaults = {
        'host': '0.0.0.0',
        'port': 8000
    }
    for key, default_value in api_defaults.items():
        if key not in config['api']:
            config['api'][key] = default_value

    # Logging defaults
    if 'logging' not in config:
        config['logging'] = {}
    logging_defaults = {
        'level': 'INFO',
        'file': 'logs/camprobe.log',
        'console_output': True,
        'timezone': 'UTC'
    }
    for key, default_value in logging_defaults.items():
        if key not in config['logging']:
            config['logging'][key] = default_value

    return config


class SiteTimeFormatter(logging.Formatter):
    """Formatter that renders timestamps in the site's configured timezone"""

    def __init__(self, fmt=None, tz_name: str = 'UTC'):
        super().__init__(fmt)
        self.site_tz = pytz.timezone(tz_name)

    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, tz=self.site_tz)
        if datefmt:
            return dt.strftime(datefmt)
        else:
            # Default format: YYYY-MM-DD HH:MM:SS TZ
            return dt.strftime('%Y-%m-%d %H:%M:%S %Z')

def setup_logging(config: Dict) -> None:
    """Setup logging based on configuration with site-local timestamps"""
    log_config = config.get('logging', {})
    level = log_config.get('level', 'INFO')
    tz_name = log_config.get('timezone', 'UTC')

    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    formatter = SiteTimeFormatter(log_format, tz_name)

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper()))

    # Console handler
    if log_config.get('console_output', True):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    # File handler
    log_file = log_config.get('file')
    if log_file:
        # Create logs directory if it doesn't exist
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    logger.info(f"Logging configured: level={level}, timezone={tz_name}, "
                f"console={log_config.get('console_output', True)}, file={log_file}")

def get_sample_config() -> Dict:
    """Return a sample configuration for reference"""
    return {
        "discovery": {
            "timeout_seconds": 5,
            "scan_interval_minutes": 15,
            "interfaces": [],
            "include_loopback": False,
            "multicast_ttl": 2
        },
        "api": {
            "host": "0.0.0.0",
            "port": 8000
        },
        "logging": {
            "level": "INFO",
            "file": "logs/camprobe.log",
            "console_output": True,
            "timezone": "UTC"
        }
    }
