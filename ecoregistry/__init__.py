# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Module ecosystem registry updater.

Follows the module index, records every module path it reports and resolves
each module's latest version through the module proxy.
"""

__version__ = "1.0.0"
