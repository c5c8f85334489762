"""Email notifications (welcome and conversion-complete) via SendGrid."""
