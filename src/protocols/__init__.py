"""Protocol readers."""
