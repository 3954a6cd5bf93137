"""BizSuite API routers"""
