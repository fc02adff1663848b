"""Unit tests for OCF exit codes and roles."""

from fwrole.core.exceptions import (
    BackendUnavailable,
    ConfigurationError,
    ExecutionError,
    RuleMutationFailure,
    StateFileError,
    ValidationError,
)
from fwrole.core.ocf import OcfStatus, Role


class TestOcfStatus:
    """Tests for OcfStatus enum."""

    def test_values(self):
        assert OcfStatus.SUCCESS == 0
        assert OcfStatus.ERR_GENERIC == 1
        assert OcfStatus.ERR_ARGS == 2
        assert OcfStatus.ERR_UNIMPLEMENTED == 3
        assert OcfStatus.ERR_PERM == 4
        assert OcfStatus.ERR_INSTALLED == 5
        assert OcfStatus.ERR_CONFIGURED == 6
        assert OcfStatus.NOT_RUNNING == 7
        assert OcfStatus.RUNNING_PROMOTED == 8
        assert OcfStatus.FAILED_PROMOTED == 9


class TestRole:
    """Tests for Role parsing."""

    def test_current_names(self):
        assert Role.parse("Promoted") is Role.PROMOTED
        assert Role.parse("Unpromoted") is Role.UNPROMOTED

    def test_legacy_names(self):
        """Older cluster managers report Master/Slave/Started."""
        assert Role.parse("Master") is Role.PROMOTED
        assert Role.parse("Slave") is Role.UNPROMOTED
        assert Role.parse("Started") is Role.UNPROMOTED

    def test_case_and_whitespace(self):
        assert Role.parse(" promoted\n") is Role.PROMOTED

    def test_unknown(self):
        assert Role.parse(None) is None
        assert Role.parse("") is None
        assert Role.parse("Stopped") is None

    def test_str(self):
        assert str(Role.PROMOTED) == "Promoted"


class TestExitCodes:
    """Each error class should carry its OCF exit code."""

    def test_configuration_errors(self):
        assert ConfigurationError("x").exit_code == OcfStatus.ERR_CONFIGURED
        assert ValidationError("x").exit_code == OcfStatus.ERR_CONFIGURED

    def test_backend_unavailable(self):
        assert BackendUnavailable("x").exit_code == OcfStatus.ERR_INSTALLED

    def test_generic_errors(self):
        assert ExecutionError("x").exit_code == OcfStatus.ERR_GENERIC
        assert RuleMutationFailure("x").exit_code == OcfStatus.ERR_GENERIC
        assert StateFileError("x").exit_code == OcfStatus.ERR_GENERIC

    def test_execution_error_details(self):
        """Exit code and stderr should be folded into details."""
        error = ExecutionError("failed", return_code=4, stderr="lock held\n")
        assert "Exit code: 4" in error.details
        assert "Error output: lock held" in error.details
