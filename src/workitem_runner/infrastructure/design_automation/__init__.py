"""Remote execution service adapters."""

from workitem_runner.infrastructure.design_automation.client import DesignAutomationClient

__all__ = ["DesignAutomationClient"]
