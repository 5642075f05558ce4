from datetime import timedelta

# Тарифы подписки, цены задаются на сервере (XOF)
SUBSCRIPTION_PRICES = {
    "monthly": 6500,
    "yearly": 78000
}

# Длительности премиум-доступа
SUBSCRIPTION_DURATIONS = {
    "monthly": timedelta(days=30),
    "yearly": timedelta(days=365)
}

# Названия тарифов для квитанции
PLAN_LABELS = {
    "monthly": "Mensuel",
    "yearly": "Annuel"
}

# Разовый отчет об оценке (MoneyFusion)
ESTIMATION_REPORT_PRICE = 6500
ESTIMATION_REPORT_DURATION = timedelta(days=30)
ESTIMATION_REPORT_PLAN = "monthly"
ESTIMATION_REPORT_LABEL = "Rapport d'estimation"

CHECKOUT_CURRENCY = "XOF"
INVOICE_CURRENCY = "FCFA"

# Статусы, которые шлюзы считают успешными
MONEYFUSION_PAID_STATUS = "paid"
PAYTECH_SUCCESS_STATUS = "success"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}
