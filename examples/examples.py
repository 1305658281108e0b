"""Examples demonstrating the progress bar tokens and options"""

import sys
import time
import random

from tickbar import progress, ProgressBar


def example_1():
    print("=== Example 1: Basic ===")
    bar = ProgressBar(total=100)
    for _ in range(100):
        bar.tick()
        time.sleep(1 / 100)


def example_2():
    print("=== Example 2: ETA ===")
    bar = ProgressBar(format="  downloading [:bar] :percent eta: :eta",
                      total=100, clear=False, width=60)
    for _ in range(100):
        bar.tick()
        time.sleep(1 / 100)


def example_3():
    print("=== Example 3: Elapsed time ===")
    bar = ProgressBar(format="  downloading [:bar] :percent in :elapsed (:elapsedfull)",
                      total=100, clear=False, width=60)
    for _ in range(100):
        bar.tick()
        time.sleep(1 / 100)


def example_4():
    print("=== Example 4: Spinner ===")
    bar = ProgressBar(format="(:spin) [:bar] :percent",
                      total=30, clear=False, width=60)
    for _ in range(30):
        bar.tick()
        time.sleep(3 / 100)


def example_5():
    print("=== Example 5: Custom tokens ===")
    bar = ProgressBar(format="  downloading :what [:bar] :percent eta: :eta",
                      clear=False, total=200, width=60)
    for _ in range(100):
        bar.tick(tokens={'what': 'foo   '})
        time.sleep(2 / 100)
    for _ in range(100):
        bar.tick(tokens={'what': 'foobar'})
        time.sleep(2 / 100)


def example_6():
    print("=== Example 6: Download rates ===")
    bar = ProgressBar(format="  downloading foobar at :rate, got :bytes in :elapsed",
                      clear=False, total=1e7, width=60)
    for _ in range(100):
        bar.tick(random.randint(1, 100) * 1000)
        time.sleep(2 / 100)
    bar.tick(1e7)


def example_7():
    print("=== Example 7: Messages above the bar ===")
    bar = ProgressBar(format="  [:bar] :current/:total", total=50, clear=False, width=60)
    for i in range(50):
        if i % 10 == 0:
            bar.message(f"Checkpoint {i}")
        bar.tick()
        time.sleep(3 / 100)


def example_8():
    print("=== Example 8: Update by ratio with completion callback ===")
    bar = ProgressBar(format="  [:bar] :percent", total=100, clear=False, width=60,
                      callback=lambda pb: print("  done after {:.1f}s".format(pb.elapsed)))
    for i in range(1, 21):
        bar.update(i / 20)
        time.sleep(5 / 100)


def example_9():
    print("=== Example 9: Wrapping an iterable ===")
    for _ in progress(range(80), format="  :spin [:bar] :percent :elapsedfull",
                      clear=False, width=60):
        time.sleep(2 / 100)


def example_10():
    print("=== Example 10: Stdout stream ===")
    with ProgressBar(format="  [:bar] :percent", total=40, stream=sys.stdout,
                     clear=False, width=60) as bar:
        for _ in range(40):
            bar.tick()
            time.sleep(2 / 100)


if __name__ == "__main__":
    examples = [
        example_1,
        example_2,
        example_3,
        example_4,
        example_5,
        example_6,
        example_7,
        example_8,
        example_9,
        example_10,
    ]

    if len(sys.argv) > 1:
        examples = [examples[int(arg) - 1] for arg in sys.argv[1:]]

    for example in examples:
        example()
        print()
