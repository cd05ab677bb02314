from marketplace.routes.auth_callback import router as auth_callback_router
from marketplace.routes.crowdfunding import router as crowdfunding_router
from marketplace.routes.offers import router as offers_router
from marketplace.routes.payments import router as payments_router

routers = [payments_router, auth_callback_router, offers_router, crowdfunding_router]
