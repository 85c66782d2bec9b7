"""AI-assisted image editing sessions with versioned history."""
