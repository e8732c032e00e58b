"""
                Food Ordering Back Office

Client-side resource synchronization and order-workflow engine for the
administrative dashboard of a food-ordering platform, with hybrid
Mock/Real remote store architecture.

Author: Khalil_Bannouri
Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
__author__ = "Khalil_Bannouri"
