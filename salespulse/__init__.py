"""Sales CRM service: lead scoring, pipeline analytics and CRM integrations."""
