"""
Broker module - шины для передачи сообщений между системами.

Структура:
- broker/src/   - SystemBus, фабрика
- broker/mqtt/  - MQTTSystemBus
"""
