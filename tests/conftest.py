"""Shared pytest configuration for Spacely pricing tests."""
import sys
sys.dont_write_bytecode = True
