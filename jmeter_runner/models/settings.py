"""Models for orchestration settings and per-run configuration."""

import logging
from collections.abc import Mapping, Sequence
from pathlib import Path

from pydantic import Field, SecretStr, field_validator

from jmeter_runner.models.base import Model

log = logging.getLogger(__name__)

MINIMUM_EXIT_CHECK_PAUSE = 2000
TEST_END_SENTINEL = "Test has ended"


class ProxySettings(Model):
    """HTTP proxy passed to JMeter."""

    host: str = Field(..., description="Proxy host name")
    port: int = Field(default=80, gt=0, lt=65536, description="Proxy port")
    username: str | None = Field(default=None, description="Proxy user name")
    password: SecretStr | None = Field(default=None, description="Proxy password")
    non_proxy_hosts: str | None = Field(
        default=None, description="Hosts that bypass the proxy (e.g. 'localhost|*.lan')"
    )


class JMeterOptions(Model):
    """Engine options that do not depend on the position of a run in the batch."""

    jmeter_home: Path | None = Field(default=None, description="JMeter home (-d)")
    properties_file: Path | None = Field(
        default=None, description="Replacement jmeter.properties file (-p)"
    )
    additional_properties: Sequence[Path] = Field(
        default_factory=list, description="Additional properties files (-q)"
    )
    user_properties: Mapping[str, str] = Field(
        default_factory=dict, description="Local JMeter properties (-J)"
    )
    global_properties: Mapping[str, str] = Field(
        default_factory=dict, description="Properties sent to remote agents (-G)"
    )
    system_properties: Mapping[str, str] = Field(
        default_factory=dict, description="Java system properties (-D)"
    )
    log_levels: Mapping[str, str] = Field(
        default_factory=dict, description="Log level overrides by category (-L)"
    )
    proxy: ProxySettings | None = Field(default=None, description="HTTP proxy")
    results_timestamp: str | None = Field(
        default=None,
        description="Suffix appended to results file names, fixed for the whole batch",
    )


class RunSettings(Model):
    """Orchestration settings shared by every run in a batch."""

    test_dir: Path = Field(
        default=Path("src/test/jmeter"), description="Directory holding test plans"
    )
    results_dir: Path = Field(
        default=Path("target/jmeter/results"), description="Results file directory"
    )
    logs_dir: Path = Field(
        default=Path("target/jmeter/logs"), description="JMeter log file directory"
    )
    includes: Sequence[str] | None = Field(
        default=None, description="Include patterns, in execution order"
    )
    excludes: Sequence[str] | None = Field(default=None, description="Exclude patterns")
    remote_stop: bool = Field(default=False, description="Stop remote agents (-X)")
    remote_start_all: bool = Field(
        default=False, description="Start all configured remote agents (-r)"
    )
    remote_start: str | None = Field(
        default=None, description="Comma separated remote agents to start (-R)"
    )
    remote_start_and_stop_once: bool = Field(
        default=True,
        description="Start agents before the first plan and stop after the last only",
    )
    suppress_output: bool = Field(
        default=True, description="Discard what the engine prints to stdout"
    )
    exit_check_pause: int = Field(
        default=MINIMUM_EXIT_CHECK_PAUSE,
        description="Milliseconds to wait after each run for engine threads to finish",
    )
    poll_interval: int = Field(
        default=1000, gt=0, description="Milliseconds between log file checks"
    )
    completion_timeout: float | None = Field(
        default=None, gt=0, description="Seconds to wait for the end of a test"
    )
    sentinel: str = Field(
        default=TEST_END_SENTINEL, min_length=1, description="Log line marking test end"
    )
    jmeter: JMeterOptions = Field(default_factory=JMeterOptions)

    @field_validator("remote_start")
    @classmethod
    def _blank_remote_start_is_unset(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()

    @field_validator("exit_check_pause")
    @classmethod
    def _enforce_minimum_pause(cls, value: int) -> int:
        if value < MINIMUM_EXIT_CHECK_PAUSE:
            log.warning(
                "Minimum value for exit_check_pause is %d (%d seconds), "
                "setting minimum value.",
                MINIMUM_EXIT_CHECK_PAUSE,
                MINIMUM_EXIT_CHECK_PAUSE // 1000,
            )
            return MINIMUM_EXIT_CHECK_PAUSE
        return value


class RunConfiguration(Model):
    """Parameters of a single engine invocation."""

    test_plan: Path
    results_dir: Path
    log_file: Path
    remote_start_all: bool = False
    remote_stop: bool = False
    remote_start: str | None = None
    options: JMeterOptions = Field(default_factory=JMeterOptions)
