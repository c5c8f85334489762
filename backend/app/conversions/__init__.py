"""Text-to-speech conversions: convert endpoint, history and audio download."""
