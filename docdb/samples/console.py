"""
Console helpers shared by the samples.

Each sample narrates what it does, shows the request charge of the call it
just made (when the server reports one) and waits for the enter key so the
output can be read step by step.
"""

import logging
from typing import Any, Callable, Optional

from bson import json_util
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import PyMongoError

from docdb.common.database import last_request_charge
from docdb.common.error_handling import error_code, log_on_exception
from docdb.common.errors import ServiceError

logger = logging.getLogger(__name__)

SAMPLES_DATABASE = "samples"

SEPARATOR = "*" * 60


class SampleConsole:
    """
    Output and pacing for one sample run.

    Attributes:
        database: Database the sample works in
        pause: Wait for the enter key after each step
    """

    def __init__(
        self,
        database: Database,
        pause: bool = True,
        output: Callable[[str], Any] = print,
        wait_for_key: Callable[[str], Any] = input,
    ):
        self.database = database
        self.pause = pause
        self._output = output
        self._wait_for_key = wait_for_key

    def narrate(self, message: str = "") -> None:
        self._output(message)

    def show(self, item: Any) -> None:
        """Print a document (or any BSON-compatible value) as Extended JSON."""
        self._output(json_util.dumps(item, indent=2))

    def request_charge(self) -> Optional[float]:
        return last_request_charge(self.database)

    def wait(self) -> None:
        if self.pause:
            self._wait_for_key(f"Press enter key to continue{SEPARATOR}")
        self._output("")

    def log_and_wait(self, message: str) -> Optional[float]:
        """Print message followed by the charge of the previous call, then wait."""
        charge = self.request_charge()
        self._output(f"{message}{charge if charge is not None else 'n/a'}")
        self.wait()
        return charge

    def fresh_collection(self, name: str) -> Collection:
        """Drop and return the named collection so every run starts empty."""
        with log_on_exception(logger, f"drop {name}", level=logging.ERROR):
            self.database.drop_collection(name)
        return self.database[name]


def log_exception(exc: BaseException, output: Callable[[str], Any] = print) -> None:
    """
    Report a failed sample on the console.

    Driver and repository errors carry a server error code, which is shown
    next to the message; the root cause is shown for chained exceptions.
    """
    root = exc
    while root.__cause__ is not None:
        root = root.__cause__

    if isinstance(exc, (PyMongoError, ServiceError)):
        code = exc.code if isinstance(exc, ServiceError) else error_code(exc)
        output(f"{code} error occurred: {exc}, Message: {root}")
    else:
        output(f"Error: {exc}, Message: {root}")
