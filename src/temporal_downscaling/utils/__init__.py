"""
Utility functions for the temporal downscaling procedure.

This package contains configuration handling, input validation, the
package's exception hierarchy and plotting helpers.
"""
