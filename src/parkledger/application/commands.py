# File: src/parkledger/application/commands.py
"""
Command Pattern Implementation for the Parking Stay Ledger

Each caller request (entry, exit, estimate) is a command object that can be
validated, executed and recorded. The CommandProcessor is the boundary where
typed ledger failures become caller-visible result dictionaries:

    {"success": True, "data": {...}}
    {"success": False, "error_code": "already_parked", "error": "..."}

No command retries; retries belong to the caller.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Any, Tuple
from datetime import datetime, timezone
import logging
import uuid

from pydantic import ValidationError

from ..domain.exceptions import ParkingLedgerError, InvalidPlate
from ..domain.models import normalize_plate
from .dtos import StayEntryRequestDTO, StayExitRequestDTO
from .parking_service import ParkingService


# ============================================================================
# COMMAND INTERFACES AND BASE CLASSES
# ============================================================================

class Command(ABC):
    """
    Abstract base class for all commands

    A command represents an intent to change or query the ledger.
    Commands are named in the imperative (e.g., EnterVehicleCommand).
    """

    def __init__(self, command_id: Optional[str] = None):
        self.command_id = command_id or str(uuid.uuid4())
        self.executed_at: Optional[datetime] = None
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def execute(self, service: ParkingService) -> Dict[str, Any]:
        """
        Execute the command using the provided service

        Returns: result data dictionary
        Raises: ParkingLedgerError subclasses on domain failures
        """
        pass

    def validate(self) -> Tuple[bool, List[str]]:
        """
        Validate command parameters before execution

        Returns: (is_valid, error_messages)
        """
        return True, []

    def get_description(self) -> str:
        """Get human-readable command description"""
        return self.__class__.__name__.replace("Command", "")

    def to_dict(self) -> Dict[str, Any]:
        """Convert command to dictionary for the audit trail"""
        return {
            "command_id": self.command_id,
            "command_type": self.__class__.__name__,
            "description": self.get_description(),
            "executed_at": self.executed_at.isoformat() if self.executed_at else None
        }


def _validate_plate(plate: str) -> List[str]:
    # Format is checked by the ledger against its configured pattern
    if not isinstance(plate, str) or not normalize_plate(plate):
        return ["License plate cannot be empty"]
    return []


# ============================================================================
# PARKING COMMANDS
# ============================================================================

class EnterVehicleCommand(Command):
    """Command to open a stay for an entering vehicle"""

    def __init__(
        self,
        plate: str,
        entry_time: Optional[datetime] = None,
        command_id: Optional[str] = None
    ):
        super().__init__(command_id)
        self.plate = plate
        self.entry_time = entry_time

    def validate(self) -> Tuple[bool, List[str]]:
        errors = _validate_plate(self.plate)
        return len(errors) == 0, errors

    def execute(self, service: ParkingService) -> Dict[str, Any]:
        request = StayEntryRequestDTO(plate=self.plate, entry_time=self.entry_time)
        return service.register_entry(request).to_dict()

    def get_description(self) -> str:
        return f"Enter vehicle {self.plate}"


class ExitVehicleCommand(Command):
    """Command to close a stay and fix its fare"""

    def __init__(
        self,
        plate: str,
        exit_time: Optional[datetime] = None,
        command_id: Optional[str] = None
    ):
        super().__init__(command_id)
        self.plate = plate
        self.exit_time = exit_time

    def validate(self) -> Tuple[bool, List[str]]:
        errors = _validate_plate(self.plate)
        return len(errors) == 0, errors

    def execute(self, service: ParkingService) -> Dict[str, Any]:
        request = StayExitRequestDTO(plate=self.plate, exit_time=self.exit_time)
        return service.register_exit(request).to_dict()

    def get_description(self) -> str:
        return f"Exit vehicle {self.plate}"


class EstimateFareCommand(Command):
    """Query command returning the live fare estimate of a parked vehicle"""

    def __init__(
        self,
        plate: str,
        at: Optional[datetime] = None,
        command_id: Optional[str] = None
    ):
        super().__init__(command_id)
        self.plate = plate
        self.at = at

    def execute(self, service: ParkingService) -> Dict[str, Any]:
        return service.estimate_fare(self.plate, self.at).to_dict()

    def get_description(self) -> str:
        return f"Estimate fare for {self.plate}"


# ============================================================================
# COMMAND PROCESSOR
# ============================================================================

class CommandProcessor:
    """
    Executes commands against the parking service and keeps an audit trail

    Converts ParkingLedgerError subclasses and DTO validation failures into
    result dictionaries with an error_code.
    """

    def __init__(self, service: ParkingService, history_limit: int = 1000):
        self.service = service
        self.history_limit = history_limit
        self._history: List[Dict[str, Any]] = []
        self.logger = logging.getLogger(self.__class__.__name__)

    def _record(self, command: Command, result: Dict[str, Any]) -> None:
        entry = command.to_dict()
        entry["success"] = result["success"]
        if not result["success"]:
            entry["error_code"] = result["error_code"]
        self._history.append(entry)
        if len(self._history) > self.history_limit:
            del self._history[0]

    def execute(self, command: Command) -> Dict[str, Any]:
        """Validate and execute a command, returning a result dictionary"""
        self.logger.info(f"Executing {command.get_description()} ({command.command_id})")

        is_valid, errors = command.validate()
        if not is_valid:
            result = {
                "success": False,
                "error_code": InvalidPlate.error_code,
                "error": "; ".join(errors)
            }
            self._record(command, result)
            return result

        try:
            data = command.execute(self.service)
            command.executed_at = datetime.now(timezone.utc)
            result = {"success": True, "data": data}
        except ParkingLedgerError as e:
            self.logger.warning(f"{command.get_description()} rejected: {e}")
            result = {"success": False, "error_code": e.error_code, "error": str(e)}
        except ValidationError as e:
            self.logger.warning(f"{command.get_description()} has invalid input: {e}")
            result = {"success": False, "error_code": "invalid_request", "error": str(e)}
        except Exception as e:
            self.logger.error(f"Error executing {command.get_description()}: {e}", exc_info=True)
            result = {"success": False, "error_code": "internal_error", "error": f"Internal error: {e}"}

        self._record(command, result)
        return result

    def get_history(self) -> List[Dict[str, Any]]:
        """Audit trail of executed commands, oldest first"""
        return list(self._history)
