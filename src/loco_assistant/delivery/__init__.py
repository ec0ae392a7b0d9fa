"""Outbound invitation email delivery."""
