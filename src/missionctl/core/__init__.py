"""missionctl Core -- 任务领域模型、查询规格解析、持久化端口与业务服务"""
