"""BizSuite

Multi-tenant small-business management API: quoting, invoicing, payroll,
purchasing, CRM and financial analytics.
"""

__version__ = "0.1.0"
