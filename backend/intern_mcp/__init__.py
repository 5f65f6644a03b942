# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Intern MCP Server
Internship-recruiting tools served over MCP streamable HTTP
"""

__version__ = "0.1.0"
