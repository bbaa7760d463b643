"""Build JMeter command line arguments for a single run."""

from collections.abc import Mapping, Sequence
from pathlib import Path, PurePath

from jmeter_runner.models.settings import RunConfiguration

RESULTS_FILE_EXTENSION = ".jtl"


def results_file_name(config: RunConfiguration) -> Path:
    """Return where JMeter writes results for the configured test plan.

    The name only depends on the test plan, the results directory and the
    batch timestamp, never on remote start/stop flags.
    """
    stem = PurePath(config.test_plan).stem
    if config.options.results_timestamp:
        stem = f"{stem}-{config.options.results_timestamp}"
    return config.results_dir / f"{stem}{RESULTS_FILE_EXTENSION}"


def build_arguments(config: RunConfiguration) -> Sequence[str]:
    """Build the argument vector passed to the engine for one run."""
    options = config.options
    arguments = [
        "-n",
        "-t",
        str(config.test_plan),
        "-l",
        str(results_file_name(config)),
        "-j",
        str(config.log_file),
    ]

    if options.jmeter_home is not None:
        arguments += ["-d", str(options.jmeter_home)]
    if options.properties_file is not None:
        arguments += ["-p", str(options.properties_file)]
    for properties_file in options.additional_properties:
        arguments += ["-q", str(properties_file)]

    # -r and -R are mutually exclusive; starting every agent wins
    if config.remote_start_all:
        arguments.append("-r")
    elif config.remote_start:
        arguments += ["-R", config.remote_start]
    if config.remote_stop:
        arguments.append("-X")

    if (proxy := options.proxy) is not None:
        arguments += ["-H", proxy.host, "-P", str(proxy.port)]
        if proxy.username:
            arguments += ["-u", proxy.username]
        if proxy.password is not None:
            arguments += ["-a", proxy.password.get_secret_value()]
        if proxy.non_proxy_hosts:
            arguments += ["-N", proxy.non_proxy_hosts]

    arguments += _properties("-J", options.user_properties)
    arguments += _properties("-G", options.global_properties)
    arguments += _properties("-D", options.system_properties)
    arguments += _properties("-L", options.log_levels)

    return arguments


def _properties(flag: str, properties: Mapping[str, str]) -> list[str]:
    return [f"{flag}{name}={value}" for name, value in properties.items()]
