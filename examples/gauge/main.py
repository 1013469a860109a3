#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
gaugekit 使用示例

演示：
1. 使用 Builder 注册 Gauge（弱引用 / 强引用 supplier）
2. 重复注册返回第一次注册的 Gauge
3. 使用 Stdout Reader 将 Gauge 发布到 OpenTelemetry
4. 从 YAML 配置文件初始化
"""

import gc
import time
from collections import deque
from pathlib import Path


# ========== 1. 使用 Builder 注册 Gauge ==========


def example_builder():
    """使用 Builder 注册 Gauge"""
    from gaugekit import Gauge, SimpleMeterRegistry

    registry = SimpleMeterRegistry()

    queue = deque()
    gauge = (
        Gauge.builder("queue.depth", queue, len)
        .tag("region", "us")
        .description("pending items")
        .register(registry)
    )

    queue.extend([1, 2, 3])
    print(f"queue.depth = {gauge.value()}")

    # supplier 版本：强引用，supplier 返回 None 时为 NaN
    started = time.monotonic()
    uptime = Gauge.builder_from_supplier("process.uptime", lambda: time.monotonic() - started)
    uptime.base_unit("seconds").register(registry)

    for meter in registry.get_meters():
        for measurement in meter.measure():
            print(f"{meter.id} {measurement.statistic.value}={measurement.value}")

    return registry


# ========== 2. 先注册者生效 ==========


def example_first_wins():
    """重复注册返回第一次注册的 Gauge"""
    from gaugekit import Gauge, SimpleMeterRegistry

    registry = SimpleMeterRegistry()

    first_queue = deque([1])
    second_queue = deque([1, 2])
    first = Gauge.builder("queue.depth", first_queue, len).register(registry)
    second = Gauge.builder("queue.depth", second_queue, len).register(registry)

    print(f"same gauge: {first is second}, value={second.value()}")

    # 弱引用对象被回收后 Gauge 仍然存在，值为 NaN
    del first_queue
    gc.collect()
    print(f"after collect: {first.value()}")


# ========== 3. 发布到 OpenTelemetry ==========


def example_opentelemetry():
    """使用 Stdout Reader 将 Gauge 发布到 OpenTelemetry"""
    from gaugekit import Gauge
    from gaugekit.config import GaugeKitConfigBuilder
    from gaugekit.service import GaugeKitService

    config = (
        GaugeKitConfigBuilder()
        .with_service_name("my-service")
        .with_common_tags(region="us")
        .with_stdout_reader(export_interval="5s", pretty_print=True)
        .build()
    )

    service = GaugeKitService(config)
    registry = service.install()

    jobs = deque(range(10))
    Gauge.builder("jobs.pending", jobs, len).register(registry)

    # 采集时才会调用 len(jobs)
    service.provider.force_flush()
    service.shutdown()


# ========== 4. 从 YAML 配置文件初始化 ==========


def example_from_config_file():
    """从 YAML 配置文件初始化"""
    from gaugekit.service import GaugeKitService

    config_file = Path(__file__).parent / "config.yaml"
    service = GaugeKitService.from_config_file(str(config_file))
    registry = service.install()

    print(f"gaugekit initialized from config file: {type(registry).__name__}")
    service.shutdown()


if __name__ == "__main__":
    example_builder()
    example_first_wins()
    example_opentelemetry()
    example_from_config_file()
