from enum import Enum

class ServiceType(str, Enum):
    DECOR = "decor"
    PRODUCTION = "production"
    ARCHITECTURE_EXPRESS = "architecture_express"

class Modality(str, Enum):
    ONLINE = "online"
    IN_PERSON = "in_person"

class ProjectKind(str, Enum):
    NEW = "new"
    RENOVATION = "renovation"

class EnvironmentType(str, Enum):
    STANDARD = "standard"  # living room, bedroom, home office
    MEDIUM = "medium"      # kitchen, bathroom, laundry
    HIGH = "high"          # other rooms with higher complexity

class EnvironmentSize(str, Enum):
    S = "S"
    M = "M"
    L = "L"

class ServiceTier(str, Enum):
    DECOR1 = "decor1"
    DECOR2 = "decor2"
    DECOR3 = "decor3"
    PROD1 = "prod1"
    PROD3 = "prod3"

class PaymentMode(str, Enum):
    CASH = "cash"
    INSTALLMENTS = "installments"

class Positioning(str, Enum):
    INICIANTE = "iniciante"
    ESTRUTURADO = "estruturado"
    BEM_POSICIONADO = "bem_posicionado"
    PREMIUM = "premium"
    ULTRA_PREMIUM = "ultra_premium"

class BudgetStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    APPROVED = "approved"
    REJECTED = "rejected"

class ProjectStatus(str, Enum):
    AWAITING = "awaiting"
    IN_PROGRESS = "in_progress"
    DELIVERED = "delivered"
    CANCELED = "canceled"

class ProfitabilityFlag(str, Enum):
    OTIMO = "ótimo"
    ATENCAO = "atenção"
    REAJUSTAR = "reajustar"
