from plantcare.workers.clock_scheduler import ClockScheduler

__all__ = ["ClockScheduler"]
