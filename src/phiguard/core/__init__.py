"""Core building blocks shared by every PHI Guard component."""
