"""
Utils to talk back to the workflow runner: step outputs (set_output) and
failure annotations (set_failed).
"""
import logging
import os
import uuid

logger = logging.getLogger(__name__)


def escape_data(value):
    """
    Escape a message for use in a workflow command
    """
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def set_output(name, value, environ=None):
    """
    Set step output `name` to `value`.

    Outputs are appended to the file named by GITHUB_OUTPUT. Outside of a
    runner they are just printed.
    """
    if environ is None:
        environ = os.environ
    value = str(value)

    github_output = environ.get("GITHUB_OUTPUT")
    if not github_output:
        print(f"{name}={value}")
        return

    logger.info(f"Setting output {name}={value}")
    with open(github_output, "a", encoding="utf-8") as f:
        if "\n" in value:
            delimiter = f"ghadelimiter_{uuid.uuid4()}"
            f.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")
        else:
            f.write(f"{name}={value}\n")


def set_failed(message):
    """
    Report `message` as an error annotation and return the exit code to use.
    """
    print(f"::error::{escape_data(str(message))}")
    return 1
