"""
Тесты finprim

- tests/unit/     : модульные тесты scalar типов, округления, PV/NPV,
                    производных, движков поиска корня, солверов ставок
                    и JSON Schema контрактов
- tests/property/ : property-based тесты (hypothesis) сходимости,
                    согласованности методов и scalar типов
"""
