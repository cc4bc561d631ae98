from enum import Enum


class RunStatus(str, Enum):
    SUCCESS = "SUCCESS"
    PARTIAL = "PARTIAL"
    INPUT_ERROR = "INPUT_ERROR"
    CONFIG_ERROR = "CONFIG_ERROR"


EXIT_CODES = {
    RunStatus.SUCCESS: 0,
    RunStatus.PARTIAL: 2,
    RunStatus.INPUT_ERROR: 3,
    RunStatus.CONFIG_ERROR: 4,
}


def exit_code(status: RunStatus) -> int:
    return EXIT_CODES[status]


def run_status(failed_exports: int) -> RunStatus:
    if failed_exports:
        return RunStatus.PARTIAL
    return RunStatus.SUCCESS
