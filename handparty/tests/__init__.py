"""HandParty test suite."""
