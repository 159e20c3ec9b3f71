# ================================================================================
# Test Runner Constants
# ================================================================================
#
# Shared timeouts and polling intervals (milliseconds) for suites and
# assertions.
#
# ================================================================================


class TEST_TIMEOUTS:
    DEFAULT = 30000
    SHORT = 2000
    MEDIUM = 5000
    ELEMENT_VISIBLE = 3000
    PAGE_LOAD = 10000
    SCREENSHOT = 5000


class POLLING:
    DEFAULT = 100
    FAST = 50
    SLOW = 200


__all__ = ["TEST_TIMEOUTS", "POLLING"]
