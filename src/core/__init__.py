"""Core domain package for postfilter.

Core contains the filtering rules, the configuration snapshot, and the hook
logic without any Mattermost or transport-specific code, keeping the
decisions testable offline.
"""
