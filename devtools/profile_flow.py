"""
Quick profiler, helpful to monitor startup time, which matters for a CLI
run many times a day.
"""

import cProfile
import pstats

from flow.main import main


def entrypoint():
    main(["--version"])


if __name__ == "__main__":
    cProfile.run("entrypoint()", "python_profile")

    p = pstats.Stats("python_profile")
    p.sort_stats("time").print_stats(30)
