"""
餐厅收银点餐系统后端服务
"""
