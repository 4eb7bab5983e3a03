"""Transporte MQTT para ingesta.

Estructura modular:
- topics.py: Codec de topics (generación y parsing)
- payload.py: Parser de payloads JSON / numéricos
- transport.py: Interfaz abstracta del transporte
- client.py: Cliente paho-mqtt
- registry.py: Registro topic → sensor
- receiver.py: Receptor principal + singleton

receiver.py depende de ingest/; se importa directo desde su módulo.
"""
