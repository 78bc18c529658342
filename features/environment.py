"""
Behave environment configuration for DNS Record Sync integration tests.
"""

import logging
import shutil
from pathlib import Path

import yaml

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def before_all(context):
    """Set up test environment before all tests."""
    context.base_dir = Path(__file__).parent.parent
    context.test_data_dir = context.base_dir / "test_data"
    context.test_data_dir.mkdir(exist_ok=True)

    context.test_domain = "test.example.com"
    context.seed_records = [
        {"id": "r1", "type": "A", "name": "www", "content": "192.0.2.10", "ttl": 300},
        {"id": "r2", "type": "A", "name": "api", "content": "192.0.2.20", "ttl": 300},
        {
            "id": "r3",
            "type": "MX",
            "name": "@",
            "content": "mail.test.example.com",
            "ttl": 3600,
            "priority": 10,
        },
    ]

    logger.info("Test environment setup complete")


def before_scenario(context, scenario):
    """Set up each test scenario."""
    context.scenario_name = scenario.name
    context.state_file = context.test_data_dir / f"{_slug(scenario.name)}.json"
    if context.state_file.exists():
        context.state_file.unlink()

    context.test_config = {
        "dns_providers": {
            "mock": {"domains": {context.test_domain: list(context.seed_records)}}
        },
        "default_provider": "mock",
        "domains": [context.test_domain],
        "store": {"type": "json", "path": str(context.state_file)},
        "alerts": {
            "rules": [{"name": "deletions", "change_types": ["deleted"], "cooldown_minutes": 30}]
        },
    }

    context.test_config_file = context.test_data_dir / "test_config.yaml"
    with open(context.test_config_file, "w") as f:
        yaml.dump(context.test_config, f)

    context.results = []
    logger.info(f"Starting scenario: {scenario.name}")


def after_scenario(context, scenario):
    logger.info(f"Completed scenario: {scenario.name}")


def after_all(context):
    """Clean up test environment after all tests."""
    try:
        if context.test_data_dir.exists():
            shutil.rmtree(context.test_data_dir)
    except OSError as e:
        logger.warning(f"Failed to cleanup test data: {e}")

    logger.info("Test environment cleanup complete")


def _slug(name: str) -> str:
    return "".join(c if c.isalnum() else "_" for c in name.lower())
