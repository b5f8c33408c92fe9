from failure_monitor.main import run

run()
