"""missionctl Gateway -- 任务集合的 HTTP 接口"""
