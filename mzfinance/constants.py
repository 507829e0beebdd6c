"""Built-in reference data: payment methods and the default category set."""

from mzfinance.models.finance import Category


CREDIT_PAYMENT_METHOD = "Crédito"

PAYMENT_METHODS = [
    "Dinheiro",
    "PIX",
    "Débito",
    CREDIT_PAYMENT_METHOD,
    "Boleto",
    "Transferência",
]

REVENUE_CATEGORY_NAME = "Receita"

# (name, icon, subcategories, is_system)
_DEFAULT_CATEGORY_SPECS = [
    ("Mercado", "🛒", "Alimentos, bebidas, itens de limpeza etc", False),
    ("Necessidades", "⚠️", "Farmácia, higiene pessoal", False),
    ("Eletrônicos", "📱", "Computador, celular, consertos", False),
    ("Pet", "🐶", "Ração, veterinário", False),
    ("Roupas", "👚", "Vestuário em geral", False),
    ("Beleza", "💅", "Salão, cremes, perfumes", False),
    ("Presente", "🎁", "Presentes para amigos e família", False),
    ("Saúde", "💊", "Suplementos, academia, consultas", False),
    ("Outros", "🤷", "Gastos eventuais não planejados", False),
    ("Desenvolvimento", "🧠", "Cursos, livros, planners", False),
    ("Transporte", "🚗", "Uber, gasolina", False),
    ("Comida fora", "🍽️", "Restaurantes, delivery", False),
    ("Lazer", "🏖️", "Festas, cinema, teatro", False),
    ("Moradia", "🏠", "Aluguel, internet, água, luz", False),
    ("Contas", "🧾", "IPVA, IPTU, impostos", False),
    ("Investimento", "📈", "Aportes, poupança", False),
    ("Educação", "🎓", "Faculdade, cursos extras", False),
    ("Divida", "🤝", "Empréstimos, renegociações", False),
    ("Negócio", "💼", "Projetos pessoais, empresa", False),
    (REVENUE_CATEGORY_NAME, "💸", "Salário, renda extra", True),
    ("Fatura do Cartão", "🧾", "Pagamentos de fatura", False),
    ("Transferência", "🔁", "PIX, TED enviadas", False),
    ("Uber/99", "🚖", "Transporte por app", False),
]


def default_categories() -> list[Category]:
    """
    The built-in category set for a new household.

    Each call returns new ids, so two households never share category rows.
    """
    return [
        Category(name=name, icon=icon, subcategories=subcategories, is_system=is_system)
        for name, icon, subcategories, is_system in _DEFAULT_CATEGORY_SPECS
    ]
