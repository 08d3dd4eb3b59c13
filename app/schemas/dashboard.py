from pydantic import BaseModel
from datetime import date
from typing import List


class WeekCounts(BaseModel):
    total_tasks: int
    completed_tasks: int
    pending_tasks: int


class WeeklyBucket(WeekCounts):
    week_start: date


class DashboardStats(BaseModel):
    currentWeek: WeekCounts
    weeklyData: List[WeeklyBucket]


class TrendRow(BaseModel):
    date: str
    total_tasks: int
    completed_tasks: int


class PriorityRow(BaseModel):
    priority: int
    count: int
    completed: int


class Analytics(BaseModel):
    trends: List[TrendRow]
    priorityDistribution: List[PriorityRow]
    timeframe: str
