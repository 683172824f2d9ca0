"""Outbound notifications: agent emails and CRM follow-ups."""
