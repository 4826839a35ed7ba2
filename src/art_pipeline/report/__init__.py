"""Report package that runs the full ART report pipeline."""
