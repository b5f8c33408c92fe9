"""Stripe payment failure monitor: webhook intake, Gmail alerts, Airtable records."""
