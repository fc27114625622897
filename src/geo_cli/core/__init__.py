"""Engine: verification, classification, analysis, scoring and storage."""
