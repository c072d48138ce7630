"""Default phrase lists.

These are tuned for a Spanish/English speaking Caribbean deployment and are
only defaults: every list can be replaced from config.yaml.
"""

NOISE_TITLES = [
    "request for comments on the renewal",
    "request for comments on a previously",
    "administrative declaration of a disaster",
    "previously approved information collection",
    "renewal of a previously approved",
    "information collection request",
    "notice of proposed rulemaking",
    "proposed information collection",
    "agency information collection",
    "paperwork reduction act",
    "sunshine act meeting",
    "privacy act of 1974",
    "comment request",
    "60-day notice",
    "30-day notice",
    "submission for omb review",
]

REGION_TERMS = [
    "puerto rico",
    "boricua",
    "puertorriqueño",
    "puertorriquena",
    "san juan",
    "bayamón",
    "bayamon",
    "ponce",
    "caguas",
    "mayagüez",
    "mayaguez",
    "carolina pr",
    "arecibo",
    "guaynabo",
    "isla del encanto",
    ".pr/",
    "gobierno.pr",
]

FOREIGN_TERMS = [
    "dominicana",
    "dominicano",
    "santo domingo",
    "república dominicana",
    "mexico",
    "méxico",
    "colombia",
    "venezuela",
    "argentina",
    "españa",
    "spain",
    "paraguay",
    "chile",
    "perú",
    "peru",
    "cuba",
    "panamá",
    "panama",
    "ecuador",
    "bolivia",
    "guatemala",
    "honduras",
    "el salvador",
    "nicaragua",
    "costa rica",
    "new jersey",
    "new york city",
    "florida man",
    "india",
    "pakistan",
    "passport india",
]

NSFW_PATTERNS = [
    "onlyfans",
    "caseros",
    "porn",
    "nsfw",
    "xxx",
    "nude",
    "nudes",
    "desnuda",
    "desnudo",
    "fotos y videos",
    "leaks",
    "onlyfan",
    "fansly",
    "chaturbate",
    "manyvids",
    "sexo",
    "erotico",
    "erotica",
    "lenceria",
    "puertoricoleaks",
    "puertoricanleaks",
    "gonewild",
    "rule34",
    "hentai",
    "milf",
    "fetish",
]

CLICKBAIT_PATTERNS = [
    "blind bags",
    "mystery box",
    "unboxing haul",
    "little gray alien",
    "ufo sighting",
    "free v-bucks",
    "free robux",
    "crypto pump",
    "bitcoin millionaire",
    "weight loss secret",
    "diet pill",
    "google noticias",
    "news.google.com/stories",
]

GENERIC_KEYWORDS = [
    "puerto rico",
    "organizacion",
    "organización",
    "sin fines de lucro",
    "non-profit",
    "nonprofit",
    "ong",
    "ngo",
    "comunidad",
    "community",
    "servicio",
    "programa",
    "website",
    "pagina web",
    "contacto",
    "email",
]
