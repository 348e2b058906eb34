"""Каталог услуг: цены, длительность и допустимые размеры питомцев."""
