"""HTTP surface: admin API (v1) and the user webhook surface."""
