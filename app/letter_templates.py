"""
Centralized letter templates, categories and subscription plans.

Every generated letter shares the same frame (sender block, date, recipient
block, subject line, closing); only the body differs per category. Bodies are
str.format templates over the fields of the letter form.
"""

from app.models.letter import LetterCategory, SubscriptionPlan


LETTER_CATEGORIES = {
    LetterCategory.DEBT_RETRIEVAL: {
        "name": "Debt Retrieval",
        "description": "Professional letters for debt collection and payment demands",
    },
    LetterCategory.HR_EMPLOYMENT: {
        "name": "HR & Employment",
        "description": "Employment-related legal correspondence and workplace issues",
    },
    LetterCategory.CONTRACT_DISPUTES: {
        "name": "Contract Disputes",
        "description": "Letters addressing contract violations and disputes",
    },
    LetterCategory.TENANT_LANDLORD: {
        "name": "Tenant & Landlord",
        "description": "Property rental and lease-related legal correspondence",
    },
    LetterCategory.CONSUMER_COMPLAINTS: {
        "name": "Consumer Complaints",
        "description": "Consumer protection and complaint letters",
    },
    LetterCategory.BUSINESS_DISPUTES: {
        "name": "Business Disputes",
        "description": "Business-to-business legal correspondence",
    },
    LetterCategory.CEASE_DESIST: {
        "name": "Cease & Desist",
        "description": "Stop harassment, infringement, or unwanted behavior",
    },
    LetterCategory.DEMAND_LETTERS: {
        "name": "Demand Letters",
        "description": "Formal demands for action or payment",
    },
    LetterCategory.INSURANCE_CLAIMS: {
        "name": "Insurance Claims",
        "description": "Insurance claim disputes and correspondence",
    },
    LetterCategory.PERSONAL_INJURY: {
        "name": "Personal Injury",
        "description": "Personal injury claims and correspondence",
    },
}


SUBSCRIPTION_PLANS = {
    "basic": SubscriptionPlan(
        id="basic",
        name="Basic Plan",
        price=199,
        letters_limit=4,
        duration="annual",
        features=[
            "4 Professional Letters per year",
            "Attorney-reviewed templates",
            "PDF Download",
            "Email support",
        ],
    ),
    "premium": SubscriptionPlan(
        id="premium",
        name="One-Time Plan",
        price=199,
        letters_limit=1,
        duration="monthly",
        features=[
            "1 Professional Letter",
            "No subscription required",
            "Instant access",
            "PDF Download",
        ],
    ),
    "professional": SubscriptionPlan(
        id="professional",
        name="Professional Plan",
        price=599,
        letters_limit=8,
        duration="monthly",
        features=[
            "8 Professional Letters per month",
            "Priority support",
            "Advanced templates",
            "Rush delivery",
        ],
    ),
}


# Categories whose form asks for an amount owed and a due date
AMOUNT_CATEGORIES = {LetterCategory.DEBT_RETRIEVAL, LetterCategory.DEMAND_LETTERS}


LETTER_FRAME = """{sender_name}
{sender_address}
{sender_city}, {sender_state} {sender_zip}
{sender_phone}
{sender_email}

{date}

{recipient_name}
{recipient_address}
{recipient_city}, {recipient_state} {recipient_zip}

RE: {subject}

Dear {recipient_name},

{body}
{additional_info}
Please direct all correspondence regarding this matter to me at the address above.

Sincerely,

{sender_name}
"""


_BODIES = {
    LetterCategory.DEBT_RETRIEVAL: """This letter serves as formal notice that you owe the sum of {amount_owed}, which remains unpaid despite previous requests.

{details}

I request that payment in full be made no later than {due_date}. If payment is not received by that date, I will pursue all remedies available to me, including filing a claim in the appropriate court, without further notice.
""",
    LetterCategory.HR_EMPLOYMENT: """I am writing regarding a matter arising from my employment that requires your prompt attention.

{details}

I ask that this matter be investigated and that I receive a written response outlining the steps you will take to resolve it within fourteen (14) days of the date of this letter. I reserve all rights available to me under applicable employment law.
""",
    LetterCategory.CONTRACT_DISPUTES: """I am writing concerning our agreement and your failure to perform the obligations set out in it.

{details}

Please cure this breach within fourteen (14) days of the date of this letter. If the breach is not remedied, I will seek all damages and remedies to which I am entitled under the agreement and applicable law.
""",
    LetterCategory.TENANT_LANDLORD: """I am writing regarding the rental property and an issue under our lease that has not been resolved.

{details}

I request that this issue be addressed within the time required by the lease and applicable landlord-tenant law. Please confirm in writing how and when the matter will be resolved.
""",
    LetterCategory.CONSUMER_COMPLAINTS: """I am writing to formally complain about a product or service I purchased from you.

{details}

To resolve this complaint, I request an appropriate refund, repair or replacement within fourteen (14) days. If I do not receive a satisfactory response, I intend to refer this matter to the relevant consumer protection authorities.
""",
    LetterCategory.BUSINESS_DISPUTES: """I am writing on behalf of my business regarding an unresolved dispute between our companies.

{details}

We would prefer to resolve this matter amicably and request a written response within fourteen (14) days proposing a resolution. Absent a response, we will consider all legal options available to us.
""",
    LetterCategory.CEASE_DESIST: """This letter is a formal demand that you immediately cease and desist from the conduct described below.

{details}

If you do not stop this conduct immediately and confirm in writing within ten (10) days that you have done so, I will take further legal action without additional notice.
""",
    LetterCategory.DEMAND_LETTERS: """This letter constitutes a formal demand regarding the matter described below.

{details}

I demand that you pay {amount_owed} or otherwise satisfy this demand no later than {due_date}. Failure to comply will leave me no choice but to pursue the remedies available to me under the law.
""",
    LetterCategory.INSURANCE_CLAIMS: """I am writing regarding my insurance claim and the handling of that claim to date.

{details}

I request that you review this claim promptly and provide a written decision, including the basis for any denial or reduction, within thirty (30) days. I reserve the right to escalate this matter to the state insurance regulator.
""",
    LetterCategory.PERSONAL_INJURY: """I am writing to notify you of a claim for injuries I sustained as a result of the incident described below.

{details}

Please forward this letter to your insurance carrier and have a representative contact me within fourteen (14) days. Please preserve all evidence related to this incident.
""",
}


def get_body_template(category: LetterCategory) -> str:
    return _BODIES[LetterCategory(category)]
