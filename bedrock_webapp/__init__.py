"""Bedrock webapp plugin — provision and manage Bedrock (WordPress) installs."""

__version__ = "0.1.0"
