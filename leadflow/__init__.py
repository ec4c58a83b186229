"""LeadFlow: multi-tenant lead intake, assignment and conversion."""
