"""Identity, credential and admission control service for the CRM."""
