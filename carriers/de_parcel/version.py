VERSION = "2025.1.0"
